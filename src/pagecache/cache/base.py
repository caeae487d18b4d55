"""
Abstract base class for cache stores.

Defines the asynchronous key/value contract every backend implements.
"""

from abc import ABC, abstractmethod
from typing import Any

# Sentinel meaning "use the store's default TTL"; distinct from None,
# which means "never expire".
DEFAULT_TTL: Any = object()


class Store(ABC):
    """Abstract base class for cache stores.

    Values are opaque bytes. Expiry and eviction are the backend's own
    business; the cache layer only supplies a TTL per entry.
    """

    name = "store"

    def __init__(self, default_ttl: float | None = None):
        """Initialize the store.

        Args:
            default_ttl: TTL in seconds applied when ``set`` is called
                without one. None means entries never expire.
        """
        self.default_ttl = default_ttl

    def _resolve_ttl(self, ttl: Any) -> float | None:
        return self.default_ttl if ttl is DEFAULT_TTL else ttl

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Fetch the value stored under ``key``.

        Returns:
            The stored bytes, or None if absent or expired.

        Raises:
            StoreError: If the backend fails.
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl: Any = DEFAULT_TTL) -> None:
        """Store ``value`` under ``key``.

        Args:
            key: Cache key.
            value: Bytes to store.
            ttl: Seconds until expiry, None for no expiry, or omitted for
                the store's default.

        Raises:
            StoreError: If the backend fails.
        """
        pass

    @abstractmethod
    async def reset(self) -> None:
        """Remove every entry. Resolves once the wipe is complete."""
        pass

    async def delete(self, key: str) -> bool:
        """Delete a single entry. Returns True if something was removed."""
        raise NotImplementedError(f"{type(self).__name__} does not support delete")

    async def stats(self) -> dict[str, Any]:
        """Return backend statistics for display."""
        return {"backend": self.name, "default_ttl": self.default_ttl}

    async def close(self) -> None:
        """Release backend resources."""

    async def __aenter__(self) -> "Store":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
