"""
Common Dependencies for FastAPI Routes
"""
from fastapi import HTTPException, Request, status

from chaifi.services.summary_service import SummaryEngine
from chaifi.storage.base import Storage


def get_storage(request: Request) -> Storage:
    """
    Dependency to get the storage backend chosen at startup
    """
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage is not initialised",
        )
    return storage


def get_summary_engine(request: Request) -> SummaryEngine:
    """Summary engine bound to the active storage"""
    engine = getattr(request.app.state, "summary_engine", None)
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage is not initialised",
        )
    return engine
