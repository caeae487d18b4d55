"""
Tiered store combining several backends, e.g. memory in front of Redis.
"""

import asyncio
from typing import Any

from pagecache.cache.base import DEFAULT_TTL, Store


class MultiStore(Store):
    """Read from the first tier that has the key; write to every tier."""

    name = "multi"

    def __init__(self, stores: list[Store], default_ttl: float | None = None):
        if not stores:
            raise ValueError("MultiStore needs at least one tier")
        super().__init__(default_ttl)
        self.stores = list(stores)

    def _tier_ttl(self, ttl: Any) -> Any:
        # An explicit TTL (or None) applies to every tier; otherwise each
        # tier falls back to its own default unless this store has one.
        if ttl is not DEFAULT_TTL:
            return ttl
        return self.default_ttl if self.default_ttl is not None else DEFAULT_TTL

    async def get(self, key: str) -> bytes | None:
        for store in self.stores:
            value = await store.get(key)
            if value:
                return value
        return None

    async def set(self, key: str, value: bytes, ttl: Any = DEFAULT_TTL) -> None:
        ttl = self._tier_ttl(ttl)
        await asyncio.gather(*(store.set(key, value, ttl) for store in self.stores))

    async def delete(self, key: str) -> bool:
        results = await asyncio.gather(*(store.delete(key) for store in self.stores))
        return any(results)

    async def reset(self) -> None:
        await asyncio.gather(*(store.reset() for store in self.stores))

    async def stats(self) -> dict[str, Any]:
        tiers = await asyncio.gather(*(store.stats() for store in self.stores))
        return {
            "backend": self.name,
            "default_ttl": self.default_ttl,
            "tiers": list(tiers),
        }

    async def close(self) -> None:
        await asyncio.gather(*(store.close() for store in self.stores))
