from .base import Storage
from .sqlite_storage import SCHEMA_VERSION, SQLiteStorage

__all__ = ["Storage", "SQLiteStorage", "SCHEMA_VERSION"]
