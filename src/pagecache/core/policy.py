"""
Cache key policy.

Decides per request whether the response may be cached and, if so, under
which key and for how long.
"""

import logging

from pagecache.core.exceptions import ValidationError
from pagecache.core.models import CacheConfig, CacheKey, RequestContext

logger = logging.getLogger(__name__)

NOT_CACHEABLE = CacheKey(None)


class CachePolicy:
    """Cacheability and key/TTL derivation for one cache configuration.

    The allowlist-versus-predicate and default-versus-custom-key choices
    are made once by ``CacheConfig``; this class only applies them.
    """

    def __init__(self, config: CacheConfig, default_ttl: float | None = None):
        """Initialize the policy.

        Args:
            config: Cache configuration.
            default_ttl: TTL used when the key deriver does not supply one.
                Defaults to the configured store's TTL.
        """
        self.config = config
        self.default_ttl = default_ttl if default_ttl is not None else config.default_ttl

    def is_cacheable(self, path: str, context: RequestContext) -> bool:
        """Return True if the response for ``path`` may be cached."""
        return self.config.cacheability.allows(path, context)

    @staticmethod
    def resolve_hostname(context: RequestContext) -> str | None:
        """Return the first non-empty of hostname, host and the Host header."""
        return context.hostname or context.host or context.header("host") or None

    def derive_key(self, path: str, context: RequestContext) -> CacheKey:
        """Derive the cache key and TTL for a request.

        Does not check cacheability; see ``build_cache_key``.
        """
        hostname = self.resolve_hostname(context)
        return self.config.key_deriver.derive(path, context, hostname, self.default_ttl)

    def build_cache_key(self, path: str, context: RequestContext) -> CacheKey:
        """Return the key and TTL to cache ``path`` under.

        Returns a key of None when the request must not be cached, including
        when a custom key function produced an unusable key or TTL.
        """
        if not self.is_cacheable(path, context):
            return NOT_CACHEABLE

        try:
            return self.derive_key(path, context)
        except ValidationError as e:
            logger.warning("Not caching %s: %s", path, e)
            return NOT_CACHEABLE
