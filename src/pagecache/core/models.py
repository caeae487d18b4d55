"""
Core data models for pagecache.

This module defines the data structures shared by the cache policy, the
version guard and the cache-aside orchestrator: configuration, request
context, render results and derived cache keys.
"""

import base64
import posixpath
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Union

from pagecache.core.exceptions import ConfigurationError, ValidationError
from pagecache.core.validation import validate_cache_key, validate_ttl, validate_version

if TYPE_CHECKING:
    from pagecache.cache.base import Store


# Reserved store key holding the last deployed application version
VERSION_KEY = "appVersion"

STORE_TYPES = ("memory", "sqlite", "redis", "multi")


# =============================================================================
# Request / response
# =============================================================================


@dataclass(frozen=True)
class RequestContext:
    """Per-request data the cache reads but never modifies."""

    hostname: str | None = None
    host: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    spa: bool = False  # Served by client-side routing, never cacheable
    extra: Mapping[str, Any] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        """Look up a request header case-insensitively."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None


@dataclass
class RenderResult:
    """Output of the renderer for one route."""

    body: str | bytes
    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    error: str | None = None
    redirected: bool = False

    def __str__(self) -> str:
        flags = []
        if self.error:
            flags.append("error")
        if self.redirected:
            flags.append("redirected")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        return f"RenderResult({self.status}, {len(self.body)} bytes){suffix}"

    @property
    def is_storable(self) -> bool:
        """Return True if this result may be written to the cache."""
        return not self.error and not self.redirected

    def to_dict(self) -> dict:
        """Convert to dictionary for caching."""
        if isinstance(self.body, bytes):
            body = base64.b64encode(self.body).decode("ascii")
            binary = True
        else:
            body = self.body
            binary = False

        return {
            "body": body,
            "binary": binary,
            "status": self.status,
            "headers": dict(self.headers),
            "error": self.error,
            "redirected": self.redirected,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RenderResult":
        """Create from dictionary (cache retrieval)."""
        body = data.get("body", "")
        if data.get("binary"):
            body = base64.b64decode(body)

        return cls(
            body=body,
            status=int(data.get("status", 200)),
            headers=dict(data.get("headers") or {}),
            error=data.get("error"),
            redirected=bool(data.get("redirected", False)),
        )


@dataclass(frozen=True)
class CacheKey:
    """Cache key and TTL derived for a request.

    A key of None means the request must not be cached.
    """

    key: str | None
    ttl: float | None = None

    @property
    def cacheable(self) -> bool:
        return self.key is not None


# =============================================================================
# Path matchers
# =============================================================================


@dataclass(frozen=True)
class PrefixMatcher:
    """Allowlist entry matching paths that start with a literal prefix."""

    prefix: str

    def matches(self, path: str) -> bool:
        return path.startswith(self.prefix)

    def __str__(self) -> str:
        return self.prefix


@dataclass(frozen=True)
class PatternMatcher:
    """Allowlist entry matching paths against a regular expression.

    Uses ``search`` so that unanchored patterns match anywhere in the path.
    """

    pattern: re.Pattern

    def matches(self, path: str) -> bool:
        return self.pattern.search(path) is not None

    def __str__(self) -> str:
        return f"/{self.pattern.pattern}/"


PathMatcher = Union[PrefixMatcher, PatternMatcher]


def matcher_from(value: Any) -> PathMatcher:
    """Build a path matcher from a config value.

    Accepts a literal prefix string, a compiled regular expression, an
    existing matcher, or a mapping with a single ``prefix`` or ``pattern``
    entry (the form used in TOML files).

    Raises:
        ConfigurationError: If the value cannot be interpreted.
    """
    if isinstance(value, (PrefixMatcher, PatternMatcher)):
        return value
    if isinstance(value, str):
        return PrefixMatcher(value)
    if isinstance(value, re.Pattern):
        return PatternMatcher(value)
    if isinstance(value, Mapping):
        if "pattern" in value:
            try:
                return PatternMatcher(re.compile(value["pattern"]))
            except (re.error, TypeError) as e:
                raise ConfigurationError("pages", f"bad pattern {value['pattern']!r}: {e}")
        if "prefix" in value:
            return PrefixMatcher(str(value["prefix"]))

    raise ConfigurationError(
        "pages",
        f"entry {value!r} must be a prefix string, a regex, or a "
        "table with 'prefix' or 'pattern'",
    )


# =============================================================================
# Cacheability and key derivation variants
# =============================================================================


@dataclass(frozen=True)
class AllowlistCacheability:
    """Cache non-SPA requests whose path matches any allowlist entry."""

    pages: tuple[PathMatcher, ...]

    def allows(self, path: str, context: RequestContext) -> bool:
        if context.spa:
            return False
        return any(matcher.matches(path) for matcher in self.pages)


@dataclass(frozen=True)
class PredicateCacheability:
    """Delegate the cacheability decision entirely to a user predicate."""

    predicate: Callable[[str, RequestContext], Any]

    def allows(self, path: str, context: RequestContext) -> bool:
        return bool(self.predicate(path, context))


Cacheability = Union[AllowlistCacheability, PredicateCacheability]


@dataclass(frozen=True)
class DefaultKeyDeriver:
    """Key by path, optionally prefixed with the request hostname."""

    use_host_prefix: bool = False

    def derive(
        self,
        path: str,
        context: RequestContext,
        hostname: str | None,
        default_ttl: float | None,
    ) -> CacheKey:
        if not self.use_host_prefix:
            return CacheKey(validate_cache_key(path), default_ttl)

        # A host-prefixed key without a host would collide across sites
        if not hostname:
            return CacheKey(None)

        key = posixpath.join(hostname, path.lstrip("/"))
        return CacheKey(validate_cache_key(key), default_ttl)


@dataclass(frozen=True)
class CustomKeyDeriver:
    """Key (and optionally TTL) computed by a user function.

    The function receives ``(path, context)`` and may return:

    - a string: the key, cached for the store's default TTL;
    - a mapping with ``key`` and optional ``ttl``: a missing ``ttl`` means
      the store default, ``ttl=None`` means no expiry;
    - a ``CacheKey``: used verbatim, so ``CacheKey("k")`` never expires;
      return a string or a mapping to get the store default;
    - None or an empty key: skip caching.
    """

    function: Callable[[str, RequestContext], Any]

    def derive(
        self,
        path: str,
        context: RequestContext,
        hostname: str | None,
        default_ttl: float | None,
    ) -> CacheKey:
        result = self.function(path, context)

        if isinstance(result, CacheKey):
            return CacheKey(validate_cache_key(result.key), validate_ttl(result.ttl))
        if isinstance(result, Mapping):
            ttl = validate_ttl(result["ttl"]) if "ttl" in result else default_ttl
            return CacheKey(validate_cache_key(result.get("key")), ttl)

        return CacheKey(validate_cache_key(result), default_ttl)


KeyDeriver = Union[DefaultKeyDeriver, CustomKeyDeriver]


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True)
class StoreConfig:
    """Backend selection and options for the cache store."""

    type: str = "memory"
    ttl: float | None = None  # Default entry TTL in seconds, None = no expiry
    max_entries: int | None = None
    path: str | None = None
    url: str | None = None
    prefix: str | None = None
    stores: tuple["StoreConfig", ...] = ()
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.type not in STORE_TYPES:
            raise ConfigurationError(
                "store.type",
                f"unknown store type {self.type!r} (expected one of {', '.join(STORE_TYPES)})",
            )
        try:
            object.__setattr__(self, "ttl", validate_ttl(self.ttl, "store.ttl"))
        except ValidationError as e:
            raise ConfigurationError("store.ttl", e.details)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StoreConfig":
        """Create from a plain mapping (e.g. a TOML table)."""
        known = {"type", "ttl", "max_entries", "max", "path", "url", "prefix", "stores"}
        max_entries = data.get("max_entries", data.get("max"))

        return cls(
            type=data.get("type", "memory"),
            ttl=data.get("ttl"),
            max_entries=int(max_entries) if max_entries is not None else None,
            path=data.get("path"),
            url=data.get("url"),
            prefix=data.get("prefix"),
            stores=tuple(
                s if isinstance(s, StoreConfig) else cls.from_dict(s)
                for s in data.get("stores", ())
            ),
            options={k: v for k, v in data.items() if k not in known},
        )


@dataclass(frozen=True)
class CacheConfig:
    """Process-wide cache configuration, immutable after construction.

    ``is_cacheable`` and ``key`` are resolved once into the ``cacheability``
    and ``key_deriver`` variants used at request time.
    """

    enabled: bool = True
    pages: tuple[PathMatcher, ...] = ()
    is_cacheable: Callable[[str, RequestContext], Any] | None = None
    key: Callable[[str, RequestContext], Any] | None = None
    use_host_prefix: bool = False
    store: Union[StoreConfig, "Store"] = field(default_factory=StoreConfig)
    version: str | None = None

    cacheability: Cacheability = field(init=False, repr=False, compare=False)
    key_deriver: KeyDeriver = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.pages, (str, bytes)) or not hasattr(self.pages, "__iter__"):
            raise ConfigurationError("pages", "expected a sequence of matchers")

        pages = tuple(matcher_from(p) for p in self.pages)
        object.__setattr__(self, "pages", pages)
        object.__setattr__(self, "version", validate_version(self.version))

        if isinstance(self.store, Mapping):
            object.__setattr__(self, "store", StoreConfig.from_dict(self.store))

        if self.is_cacheable is not None:
            cacheability = PredicateCacheability(self.is_cacheable)
        else:
            cacheability = AllowlistCacheability(pages)
        object.__setattr__(self, "cacheability", cacheability)

        if self.key is not None:
            deriver = CustomKeyDeriver(self.key)
        else:
            deriver = DefaultKeyDeriver(self.use_host_prefix)
        object.__setattr__(self, "key_deriver", deriver)

    @property
    def is_complete(self) -> bool:
        """Return True if there is something to decide cacheability with."""
        return bool(self.pages) or self.is_cacheable is not None

    @property
    def default_ttl(self) -> float | None:
        """Default TTL of the configured store."""
        if isinstance(self.store, StoreConfig):
            return self.store.ttl
        return getattr(self.store, "default_ttl", None)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CacheConfig":
        """Create from a plain mapping.

        Accepts both ``use_host_prefix`` and the camelCase ``useHostPrefix``.
        """
        store = data.get("store", {})
        if isinstance(store, Mapping):
            store = StoreConfig.from_dict(store)

        return cls(
            enabled=data.get("enabled", True) is not False,
            pages=data.get("pages", ()),
            is_cacheable=data.get("is_cacheable", data.get("isCacheable")),
            key=data.get("key"),
            use_host_prefix=bool(data.get("use_host_prefix", data.get("useHostPrefix", False))),
            store=store,
            version=data.get("version"),
        )
