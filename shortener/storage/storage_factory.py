"""
Storage factory – pick the storage backend from configuration
============================================================

This module centralizes selection of the storage backend so the rest of the
app stays ignorant of where data lives.

Precedence
----------
1. `database_dsn` set        -> DBStorage (PostgreSQL)
2. `file_storage_path` set   -> FileStorage (JSON journal)
3. otherwise                 -> MemoryStorage

The selected backend is bootstrapped before it is returned. A database that
cannot be reached or whose schema cannot be created raises
BackendUnavailableError: startup fails rather than silently falling back to a
non-durable store.

LLM Prompt
----------
You are extending storage backends. Keep defaults safe ("memory"). Don't import
heavy DB modules unless the DSN selects them.
"""

from typing import Optional
import logging

from shortener.config import Settings, get_settings, redact_dsn

from .base import BaseStorage
from .file_storage import FileStorage
from .memory_storage import MemoryStorage

logger = logging.getLogger(__name__)


def get_storage(settings: Optional[Settings] = None) -> BaseStorage:
    """
    Return a bootstrapped storage backend for `settings`.

    Parameters
    ----------
    settings : Settings, optional
        Defaults to `get_settings()` (environment read at call time).

    Raises
    ------
    BackendUnavailableError
        The selected backend could not be initialized.
    """
    settings = settings or get_settings()
    backend = settings.storage_backend
    logger.info(
        "Initializing storage: backend=%s file_storage=%r dsn=%r",
        backend, settings.file_storage_path, redact_dsn(settings.database_dsn),
    )

    storage: BaseStorage
    if backend == "postgres":
        # Local import to avoid a hard psycopg dependency when not using postgres
        from .db_storage import DBStorage

        storage = DBStorage(
            dsn=settings.database_dsn,
            connect_timeout=settings.db_connect_timeout,
            statement_timeout_ms=settings.db_statement_timeout_ms,
        )
    elif backend == "file":
        storage = FileStorage(settings.file_storage_path)
    else:
        storage = MemoryStorage()

    storage.bootstrap()
    return storage
