"""
Input validation utilities for pagecache.

Provides validation functions for TTLs, cache keys and version tokens
so that malformed configuration is rejected before the first request.
"""

import math
from typing import Any

from pagecache.core.exceptions import ValidationError

# Longest key accepted by every shipped backend (Redis allows far more,
# but SQLite indexes and memcached-style stores do not).
MAX_KEY_LENGTH = 1024


def validate_ttl(value: Any, field: str = "ttl") -> float | None:
    """Validate a time-to-live value.

    Args:
        value: TTL in seconds, or None for no expiry.
        field: Name reported in the error.

    Returns:
        The TTL as a float, or None.

    Raises:
        ValidationError: If the TTL is not a positive finite number.
    """
    if value is None:
        return None

    # bool is an int subclass; ttl=True is almost certainly a mistake
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(field, repr(value), "TTL must be a number of seconds or None")

    if math.isnan(value) or math.isinf(value):
        raise ValidationError(field, repr(value), "TTL must be finite")

    if value <= 0:
        raise ValidationError(field, repr(value), "TTL must be positive")

    return float(value)


def validate_cache_key(key: Any) -> str | None:
    """Normalize a derived cache key.

    Args:
        key: Key produced by a key deriver.

    Returns:
        A non-empty string, or None when the request must not be cached.

    Raises:
        ValidationError: If the key is unreasonably long.
    """
    if key is None:
        return None

    key = key if isinstance(key, str) else str(key)
    if not key:
        return None

    if len(key) > MAX_KEY_LENGTH:
        raise ValidationError(
            "cache_key",
            key[:50] + "...",
            f"Key exceeds {MAX_KEY_LENGTH} character limit",
        )

    return key


def validate_version(version: Any) -> str | None:
    """Normalize an application version token.

    Empty values mean "no version configured" and disable the version guard.
    """
    if version is None:
        return None

    version = str(version).strip()
    return version or None
