"""
In-process memory store.

Keeps entries in an insertion-ordered dict with monotonic-clock expiry.
When ``max_entries`` is set, the oldest entries are evicted first.
"""

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any

from pagecache.cache.base import DEFAULT_TTL, Store


@dataclass
class MemoryEntry:
    """Stored value with its expiry deadline."""

    value: bytes
    expires_at: float | None = None

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return time.monotonic() >= self.expires_at


class MemoryStore(Store):
    """Memory-backed store for single-process deployments and tests."""

    name = "memory"

    def __init__(
        self,
        default_ttl: float | None = None,
        max_entries: int | None = None,
    ):
        """Initialize the memory store.

        Args:
            default_ttl: Default time-to-live in seconds.
            max_entries: Maximum number of live entries; None for unbounded.
        """
        super().__init__(default_ttl)
        self.max_entries = max_entries
        self._entries: OrderedDict[str, MemoryEntry] = OrderedDict()
        self._evictions = 0

    async def get(self, key: str) -> bytes | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired:
            del self._entries[key]
            return None
        return entry.value

    async def set(self, key: str, value: bytes, ttl: Any = DEFAULT_TTL) -> None:
        ttl = self._resolve_ttl(ttl)
        expires_at = time.monotonic() + ttl if ttl is not None else None

        self._entries.pop(key, None)
        self._entries[key] = MemoryEntry(value=value, expires_at=expires_at)
        self._evict()

    async def reset(self) -> None:
        self._entries.clear()

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def stats(self) -> dict[str, Any]:
        expired = sum(1 for entry in self._entries.values() if entry.is_expired)
        return {
            "backend": self.name,
            "default_ttl": self.default_ttl,
            "total_entries": len(self._entries),
            "valid_entries": len(self._entries) - expired,
            "expired_entries": expired,
            "max_entries": self.max_entries,
            "evictions": self._evictions,
        }

    def _evict(self) -> None:
        if self.max_entries is None:
            return
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
            self._evictions += 1

    def __len__(self) -> int:
        return len(self._entries)
