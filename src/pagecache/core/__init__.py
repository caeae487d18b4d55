"""
Core module for pagecache.

Contains data models, the cache key policy, the version guard, the
cache-aside orchestrator and exceptions.
"""

from pagecache.core.config import load_config
from pagecache.core.exceptions import (
    ConfigurationError,
    PageCacheError,
    SerializationError,
    StoreError,
    ValidationError,
)
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
from pagecache.core.orchestrator import CacheAsideRenderer, Renderer
from pagecache.core.policy import CachePolicy
from pagecache.core.version import VersionGuard

__all__ = [
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
    "Renderer",
    "VersionGuard",
    "load_config",
    # Exceptions
    "PageCacheError",
    "ConfigurationError",
    "StoreError",
    "SerializationError",
    "ValidationError",
]
