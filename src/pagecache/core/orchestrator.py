"""
Cache-aside orchestration around a renderer.

Per request::

    START -> key check -> BYPASS -> RENDER -> RETURN
                       -> LOOKUP -> HIT -> RETURN
                       -> LOOKUP -> MISS/ERROR -> RENDER -> (STORE) -> RETURN

Nothing is retried. Store failures only ever cost a cache miss; render
failures reach the caller unchanged.
"""

import logging
from typing import Protocol

from pagecache.cache.base import Store
from pagecache.core.models import RenderResult, RequestContext
from pagecache.core.policy import CachePolicy
from pagecache.core.tasks import BackgroundTasks
from pagecache.core.version import VersionGuard
from pagecache.serializer import Serializer, default_serializer

logger = logging.getLogger(__name__)


class Renderer(Protocol):
    """The expensive operation being cached."""

    @property
    def is_ready(self) -> bool: ...

    async def render(self, route: str, context: RequestContext) -> RenderResult: ...


class CacheAsideRenderer:
    """Wraps a renderer with a read-through cache.

    Exposes the same ``render(route, context)`` signature as the wrapped
    renderer so hosts can route requests to either.
    """

    def __init__(
        self,
        renderer: Renderer,
        store: Store,
        policy: CachePolicy,
        guard: VersionGuard,
        serializer: Serializer = default_serializer,
        tasks: BackgroundTasks | None = None,
    ):
        self.renderer = renderer
        self.store = store
        self.policy = policy
        self.guard = guard
        self.serializer = serializer
        self.tasks = tasks if tasks is not None else guard.tasks

    @property
    def is_ready(self) -> bool:
        return self.renderer.is_ready

    async def render(self, route: str, context: RequestContext) -> RenderResult:
        """Serve ``route`` from the cache, rendering and storing on a miss."""
        if self.guard.version and not self.guard.version_saved:
            self.tasks.spawn(self.guard.persist_version_once(), "version marker write")

        cache_key = self.policy.build_cache_key(route, context)
        if not cache_key.cacheable or not self.renderer.is_ready:
            return await self.renderer.render(route, context)

        cached = await self._lookup(cache_key.key)
        if cached is not None:
            return cached

        result = await self.renderer.render(route, context)

        if result.is_storable:
            self._store_in_background(cache_key.key, result, cache_key.ttl)

        return result

    async def _lookup(self, key: str) -> RenderResult | None:
        try:
            data = await self.store.get(key)
            if not data:
                return None
            return self.serializer.deserialize(data)
        except Exception as e:
            logger.debug("Cache lookup for %s failed, rendering instead: %s", key, e)
            return None

    def _store_in_background(self, key: str, result: RenderResult, ttl: float | None) -> None:
        # Encode now so later changes to ``result`` by the host are not cached
        try:
            data = self.serializer.serialize(result)
        except Exception as e:
            logger.debug("Could not encode result for %s, not caching: %s", key, e)
            return

        self.tasks.spawn(self.store.set(key, data, ttl=ttl), f"cache write for {key}")
