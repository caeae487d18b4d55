"""
Cache store backends.

Provides a uniform async get/set/reset contract over memory, SQLite,
Redis and tiered stores.
"""

from pagecache.cache.base import DEFAULT_TTL, Store
from pagecache.cache.factory import make_store
from pagecache.cache.memory import MemoryStore
from pagecache.cache.multi import MultiStore
from pagecache.cache.sqlite import SQLiteStore

__all__ = [
    "DEFAULT_TTL",
    "Store",
    "MemoryStore",
    "MultiStore",
    "SQLiteStore",
    "make_store",
]
