from __future__ import annotations

from loguru import logger

from ..config import Settings
from .file_store import FileTaskStore
from .interfaces import TaskStore
from .sql_store import SqlTaskStore


def select_store(settings: Settings) -> TaskStore:
    """Pick the backend for this process: relational when reachable, file otherwise.

    Falling back is never fatal; the choice is not revisited afterwards.
    """
    if not settings.database_url:
        logger.warning("DATABASE_URL not set - using local file store at {}", settings.data_file)
        return FileTaskStore(settings.data_file)

    store: SqlTaskStore | None = None
    try:
        logger.info("Connecting to database...")
        store = SqlTaskStore.from_url(settings.database_url, ssl=settings.database_ssl)
        store.ensure_schema()
    except Exception as exc:
        logger.error("Database unavailable ({}: {}) - falling back to local file store at {}",
                     exc.__class__.__name__, exc, settings.data_file)
        if store is not None:
            store.close()
        return FileTaskStore(settings.data_file)

    logger.info("Connected to {}; tasks table created/verified", store.source)
    return store
