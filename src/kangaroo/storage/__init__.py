"""Kangaroo storage layer -- token registry and custodial key store."""

from kangaroo.storage.base import Store, TokenRegistry, UserStore
from kangaroo.storage.database import Database, get_database
from kangaroo.storage.memory import MemoryStore
from kangaroo.storage.models import TokenRecord, UserRecord
from kangaroo.storage.store import SqliteStore

__all__ = [
    "Database",
    "get_database",
    "MemoryStore",
    "SqliteStore",
    "Store",
    "TokenRecord",
    "TokenRegistry",
    "UserRecord",
    "UserStore",
]
