"""
High-level programmatic API for pagecache.

This module attaches the cache to a renderer and hands back the cache
handle the host routes requests through.

Example:
    import asyncio
    from pagecache import RequestContext, page_cache

    async def main(renderer):
        cache = await page_cache(
            renderer,
            pages=["/blog"],
            store={"type": "memory", "ttl": 60},
            version="1.4.2",
        )
        result = await cache.render("/blog/post-1", RequestContext(hostname="example.com"))
        print(result.status)
        await cache.close()
"""

import logging
from collections.abc import Mapping
from typing import Any

from pagecache.cache.base import DEFAULT_TTL, Store
from pagecache.cache.factory import make_store
from pagecache.core.models import CacheConfig, CacheKey, RenderResult, RequestContext
from pagecache.core.orchestrator import CacheAsideRenderer, Renderer
from pagecache.core.policy import CachePolicy
from pagecache.core.tasks import BackgroundTasks
from pagecache.core.version import VersionGuard
from pagecache.serializer import Serializer, default_serializer

logger = logging.getLogger(__name__)


class PageCache:
    """Cache handle returned to the host.

    ``render`` is the cache-wrapped entry point; ``get``, ``set`` and
    ``reset`` give direct access to the store for manual invalidation.
    """

    def __init__(
        self,
        renderer: Renderer,
        config: CacheConfig,
        store: Store | None = None,
        serializer: Serializer = default_serializer,
    ):
        self.config = config
        self.store = store if store is not None else make_store(config.store)
        self.tasks = BackgroundTasks()
        self.policy = CachePolicy(config, default_ttl=self.store.default_ttl)
        self.guard = VersionGuard(self.store, config.version, tasks=self.tasks)
        self.renderer = CacheAsideRenderer(
            renderer,
            self.store,
            self.policy,
            self.guard,
            serializer=serializer,
            tasks=self.tasks,
        )

    @property
    def version_saved(self) -> bool:
        """Whether the version marker has been written since the last reset."""
        return self.guard.version_saved

    @property
    def is_ready(self) -> bool:
        return self.renderer.is_ready

    async def render(self, route: str, context: RequestContext) -> RenderResult:
        """Render ``route``, serving and populating the cache as configured."""
        return await self.renderer.render(route, context)

    def cache_key(self, route: str, context: RequestContext) -> CacheKey:
        """Return the key and TTL ``route`` would be cached under."""
        return self.policy.build_cache_key(route, context)

    async def get(self, key: str) -> bytes | None:
        return await self.store.get(key)

    async def set(self, key: str, value: bytes, ttl: Any = DEFAULT_TTL) -> None:
        await self.store.set(key, value, ttl)

    async def reset(self) -> None:
        """Wipe the store. The version marker is rewritten on the next request."""
        await self.store.reset()
        self.guard.version_saved = False

    async def wait_pending(self) -> None:
        """Wait for background store writes to finish."""
        await self.tasks.wait()

    async def close(self) -> None:
        """Flush background writes and close the store."""
        await self.wait_pending()
        await self.store.close()

    async def __aenter__(self) -> "PageCache":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def page_cache(
    renderer: Renderer | None,
    config: CacheConfig | Mapping[str, Any] | None = None,
    *,
    serializer: Serializer = default_serializer,
    **options: Any,
) -> PageCache | None:
    """Attach a cache to ``renderer``.

    Args:
        renderer: Object with an async ``render(route, context)`` method and
            an ``is_ready`` flag.
        config: A ``CacheConfig`` or a mapping accepted by
            ``CacheConfig.from_dict``. Keyword ``options`` are used when it
            is omitted.
        serializer: Codec for stored results.

    Returns:
        The cache handle, or None when the cache is disabled, there is no
        renderer, or the configuration has no way to decide cacheability.
        The host must route requests to ``handle.render``.
    """
    if config is None:
        config = CacheConfig.from_dict(options)
    elif isinstance(config, Mapping):
        config = CacheConfig.from_dict({**config, **options})

    if not config.enabled or renderer is None:
        logger.debug("Page cache disabled, not installing")
        return None

    if not config.is_complete:
        logger.warning("Page cache configuration is missing 'pages' or 'is_cacheable', not installing")
        return None

    cache = PageCache(renderer, config, serializer=serializer)
    await cache.guard.ensure_fresh_cache()
    return cache
