"""
Database engine and session factory for the SQL storage backend
"""
from sqlalchemy import create_engine, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests and local runs)
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine; SQLite connections are shared across threads."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
