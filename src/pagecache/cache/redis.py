"""
Redis-backed store for multi-process and multi-host deployments.
"""

from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from pagecache.cache.base import DEFAULT_TTL, Store
from pagecache.core.exceptions import StoreError


class RedisStore(Store):
    """Store entries in Redis with per-key expiry.

    With a ``prefix`` every key is namespaced as ``<prefix>:<key>`` and
    ``reset`` only removes that namespace; without one ``reset`` flushes
    the whole logical database.
    """

    name = "redis"

    # Keys deleted per round trip during a prefixed reset
    RESET_BATCH_SIZE = 500

    def __init__(
        self,
        url: str | None = None,
        default_ttl: float | None = None,
        prefix: str | None = None,
        client: redis.Redis | None = None,
        **options: Any,
    ):
        """Initialize the Redis store.

        Args:
            url: Redis URL, e.g. ``redis://localhost:6379/0``. Ignored when
                ``client`` is given.
            default_ttl: Default time-to-live in seconds.
            prefix: Optional key namespace.
            client: Pre-built ``redis.asyncio.Redis`` client.
            **options: Extra keyword arguments for ``redis.from_url``.
        """
        super().__init__(default_ttl)
        self.url = url or "redis://localhost:6379/0"
        self.prefix = prefix
        self._owns_client = client is None
        self._client = client if client is not None else redis.from_url(self.url, **options)

    def _full_key(self, key: str) -> str:
        return f"{self.prefix}:{key}" if self.prefix else key

    async def get(self, key: str) -> bytes | None:
        try:
            return await self._client.get(self._full_key(key))
        except RedisError as e:
            raise StoreError("get", str(e))

    async def set(self, key: str, value: bytes, ttl: Any = DEFAULT_TTL) -> None:
        ttl = self._resolve_ttl(ttl)
        # Millisecond precision so fractional TTLs are honored
        px = max(1, int(ttl * 1000)) if ttl is not None else None

        try:
            await self._client.set(self._full_key(key), value, px=px)
        except RedisError as e:
            raise StoreError("set", str(e))

    async def delete(self, key: str) -> bool:
        try:
            return bool(await self._client.delete(self._full_key(key)))
        except RedisError as e:
            raise StoreError("delete", str(e))

    async def reset(self) -> None:
        try:
            if not self.prefix:
                await self._client.flushdb()
                return

            batch = []
            async for key in self._client.scan_iter(match=f"{self.prefix}:*"):
                batch.append(key)
                if len(batch) >= self.RESET_BATCH_SIZE:
                    await self._client.delete(*batch)
                    batch = []
            if batch:
                await self._client.delete(*batch)

        except RedisError as e:
            raise StoreError("reset", str(e))

    async def stats(self) -> dict[str, Any]:
        try:
            size = await self._client.dbsize()
        except RedisError as e:
            raise StoreError("stats", str(e))

        return {
            "backend": self.name,
            "default_ttl": self.default_ttl,
            "url": self.url,
            "prefix": self.prefix,
            "db_keys": size,
        }

    async def close(self) -> None:
        """Close the client if we own it."""
        if self._owns_client:
            await self._client.aclose()
