"""
StudentRoster Persistence Module

Record store backends. Every store is constructed explicitly and handed to
the repository; there is no process-wide store instance.
"""

from .base import RecordStore
from .memory import MemoryStore
from .sql import SQLStore, StudentRow, create_sql_engine, DEFAULT_DATABASE_URL

__all__ = [
    "RecordStore",
    "MemoryStore",
    "SQLStore",
    "StudentRow",
    "create_sql_engine",
    "DEFAULT_DATABASE_URL",
]
