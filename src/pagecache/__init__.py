"""
pagecache

A read-through, cache-aside layer for expensive page renders. Decides per
request whether a response may be cached, derives its key and TTL, serves
hits from a pluggable key/value store, and wipes the store when a new
application version is deployed.

Quick Start:
    >>> import asyncio
    >>> from pagecache import RequestContext, page_cache
    >>> async def main(renderer):
    ...     cache = await page_cache(renderer, pages=["/blog"], store={"ttl": 60})
    ...     return await cache.render("/blog/post-1", RequestContext(hostname="example.com"))
"""

__version__ = "0.1.0"

# High-level API (recommended for most users)
from pagecache.api import PageCache, page_cache

# Stores
from pagecache.cache import MemoryStore, MultiStore, SQLiteStore, Store, make_store

# Core components (for advanced usage)
from pagecache.core.config import load_config
from pagecache.core.orchestrator import CacheAsideRenderer
from pagecache.core.policy import CachePolicy
from pagecache.core.version import VersionGuard

# Exceptions
from pagecache.core.exceptions import (
    ConfigurationError,
    PageCacheError,
    SerializationError,
    StoreError,
    ValidationError,
)

# Data models
from pagecache.core.models import (
    VERSION_KEY,
    CacheConfig,
    CacheKey,
    PatternMatcher,
    PrefixMatcher,
    RenderResult,
    RequestContext,
    StoreConfig,
)
from pagecache.serializer import JSONSerializer, deserialize, serialize

__all__ = [
    # Version
    "__version__",
    # High-level API
    "PageCache",
    "page_cache",
    "load_config",
    # Models
    "VERSION_KEY",
    "CacheConfig",
    "CacheKey",
    "PatternMatcher",
    "PrefixMatcher",
    "RenderResult",
    "RequestContext",
    "StoreConfig",
    # Core
    "CacheAsideRenderer",
    "CachePolicy",
    "VersionGuard",
    # Stores
    "Store",
    "MemoryStore",
    "MultiStore",
    "SQLiteStore",
    "make_store",
    # Serialization
    "JSONSerializer",
    "serialize",
    "deserialize",
    # Exceptions
    "PageCacheError",
    "ConfigurationError",
    "StoreError",
    "SerializationError",
    "ValidationError",
]
