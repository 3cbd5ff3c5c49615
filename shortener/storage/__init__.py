"""
Storage backends for the shortener.

`DBStorage` and `get_storage` are imported from their own modules
(`shortener.storage.db_storage`, `shortener.storage.storage_factory`) so that
importing this package does not pull in psycopg.
"""

from .base import BaseStorage
from .file_storage import FileStorage
from .memory_storage import MemoryStorage
from .models import Record, SaveResult, UserURLEntry

__all__ = ["BaseStorage", "FileStorage", "MemoryStorage", "Record", "SaveResult", "UserURLEntry"]
