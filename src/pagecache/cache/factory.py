"""
Store construction from configuration.
"""

from collections.abc import Mapping
from typing import Any, Union

from pagecache.cache.base import Store
from pagecache.cache.memory import MemoryStore
from pagecache.cache.multi import MultiStore
from pagecache.cache.sqlite import SQLiteStore
from pagecache.core.exceptions import ConfigurationError
from pagecache.core.models import StoreConfig


def make_store(config: Union[StoreConfig, Store, Mapping[str, Any], None]) -> Store:
    """Build a store from its configuration.

    Args:
        config: A ``StoreConfig``, a plain mapping with the same fields,
            an already constructed ``Store`` (returned unchanged), or None
            for an unbounded memory store.

    Returns:
        A ready-to-use store.

    Raises:
        ConfigurationError: If the backend type is unknown or misconfigured.
    """
    if isinstance(config, Store):
        return config
    if config is None:
        config = StoreConfig()
    elif isinstance(config, Mapping):
        config = StoreConfig.from_dict(config)

    options = dict(config.options)

    if config.type == "memory":
        return MemoryStore(default_ttl=config.ttl, max_entries=config.max_entries)

    if config.type == "sqlite":
        return SQLiteStore(db_path=config.path, default_ttl=config.ttl)

    if config.type == "redis":
        # Imported lazily so the redis client is only loaded when used
        from pagecache.cache.redis import RedisStore

        return RedisStore(url=config.url, default_ttl=config.ttl, prefix=config.prefix, **options)

    if config.type == "multi":
        if not config.stores:
            raise ConfigurationError("store.stores", "a multi store needs at least one tier")
        return MultiStore([make_store(tier) for tier in config.stores], default_ttl=config.ttl)

    raise ConfigurationError("store.type", f"unknown store type {config.type!r}")
