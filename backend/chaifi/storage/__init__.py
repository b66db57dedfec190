"""
Storage backends and the one place that decides which one is active
"""
import logging

from chaifi.config import Settings
from chaifi.exceptions import StorageUnavailableError
from chaifi.storage.base import Storage
from chaifi.storage.memory import MemoryStorage
from chaifi.storage.sql import DatabaseStorage

logger = logging.getLogger(__name__)

STORAGE_BACKENDS = ("auto", "memory", "database")

__all__ = ["Storage", "MemoryStorage", "DatabaseStorage", "init_storage", "STORAGE_BACKENDS"]


async def init_storage(settings: Settings) -> Storage:
    """
    Build and connect the storage backend for this process.

    - memory: always the in-memory store.
    - database: DATABASE_URL is required.
    - auto: database when DATABASE_URL is set, memory otherwise.

    If the database cannot be reached the in-memory store is returned instead,
    with `fallback_reason` set so the degradation shows up on /health.
    """
    backend = settings.STORAGE_BACKEND.lower()
    if backend not in STORAGE_BACKENDS:
        raise ValueError(
            f"Unknown STORAGE_BACKEND {settings.STORAGE_BACKEND!r}, expected one of {', '.join(STORAGE_BACKENDS)}"
        )

    if backend == "memory" or (backend == "auto" and not settings.DATABASE_URL):
        logger.info("Using in-memory storage")
        return MemoryStorage(seed_menu=settings.SEED_DEFAULT_MENU)

    if not settings.DATABASE_URL:
        return _fallback("STORAGE_BACKEND=database but DATABASE_URL is not set", settings)

    logger.info("Initializing database storage...")
    storage = DatabaseStorage(
        settings.DATABASE_URL,
        echo=settings.SQL_ECHO,
        seed_menu=settings.SEED_DEFAULT_MENU,
    )
    try:
        await storage.connect()
    except StorageUnavailableError as e:
        logger.error("Database storage initialization failed: %s", e)
        await storage.close()
        return _fallback(str(e), settings)

    logger.info("Database storage initialized successfully")
    return storage


def _fallback(reason: str, settings: Settings) -> MemoryStorage:
    logger.warning("Falling back to in-memory storage; data will not survive a restart (%s)", reason)
    storage = MemoryStorage(seed_menu=settings.SEED_DEFAULT_MENU)
    storage.fallback_reason = reason
    return storage
