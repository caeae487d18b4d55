"""
Codec between render results and the bytes kept in the store.

The default codec writes UTF-8 JSON of ``RenderResult.to_dict()``; binary
bodies are base64-encoded. Any object with ``serialize``/``deserialize``
methods can be passed to the cache instead.
"""

import binascii
import json
from typing import Protocol

from pagecache.core.exceptions import SerializationError
from pagecache.core.models import RenderResult


class Serializer(Protocol):
    """Converts render results to bytes and back."""

    def serialize(self, result: RenderResult) -> bytes: ...

    def deserialize(self, data: bytes) -> RenderResult: ...


class JSONSerializer:
    """JSON codec for render results."""

    def serialize(self, result: RenderResult) -> bytes:
        try:
            return json.dumps(result.to_dict(), separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError("serialize", str(e))

    def deserialize(self, data: bytes) -> RenderResult:
        try:
            payload = json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SerializationError("deserialize", str(e))

        if not isinstance(payload, dict):
            raise SerializationError("deserialize", f"expected an object, got {type(payload).__name__}")

        try:
            return RenderResult.from_dict(payload)
        except (binascii.Error, TypeError, ValueError) as e:
            raise SerializationError("deserialize", str(e))


default_serializer = JSONSerializer()


def serialize(result: RenderResult) -> bytes:
    """Encode a render result with the default codec."""
    return default_serializer.serialize(result)


def deserialize(data: bytes) -> RenderResult:
    """Decode a render result with the default codec."""
    return default_serializer.deserialize(data)
