"""
aiohttp integration.

Serves GET and HEAD requests of an ``aiohttp.web`` application through a
page cache::

    from aiohttp import web
    from pagecache.integrations.aiohttp import setup

    app = web.Application()
    app.router.add_get("/blog/{slug}", blog_post)
    setup(app, pages=["/blog"], store={"type": "memory", "ttl": 60}, version="1.4.2")
    web.run_app(app)

The cache is attached on application startup and closed on cleanup. Until
startup has finished the renderer reports itself not ready and requests
bypass the cache.
"""

import logging
from typing import Any, Awaitable, Callable

from aiohttp import web

from pagecache.api import PageCache, page_cache
from pagecache.core.models import RenderResult, RequestContext

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

# Set ``request[SPA_KEY] = True`` in an earlier middleware to mark a
# client-side-routing fallback that must never be cached.
SPA_KEY = "pagecache_spa"

# Request key holding the handler's own response on a cache miss
LIVE_RESPONSE_KEY = "pagecache_response"

# Headers that describe one transfer, or one client, rather than the page
UNCACHED_HEADERS = frozenset(
    h.lower()
    for h in (
        "Connection",
        "Content-Length",
        "Date",
        "Keep-Alive",
        "Set-Cookie",
        "Transfer-Encoding",
    )
)

TEXT_CONTENT_TYPES = ("application/json", "application/javascript", "application/xml")


def context_from_request(request: web.Request, handler: Handler | None = None) -> RequestContext:
    """Build a ``RequestContext`` for an aiohttp request.

    The request and handler travel in ``extra`` so ``AiohttpRenderer`` can
    call the handler on a cache miss.
    """
    return RequestContext(
        hostname=request.url.host,
        host=request.host,
        headers=request.headers,
        spa=bool(request.get(SPA_KEY, False)),
        extra={"request": request, "handler": handler},
    )


def is_replayable(response: web.StreamResponse) -> bool:
    """Return True if ``response`` can be stored and served again later.

    Only plain ``web.Response`` objects with an in-memory body qualify;
    streamed responses, files and ``Payload`` bodies are produced while
    being sent and cannot be captured.
    """
    return isinstance(response, web.Response) and (
        response.body is None or isinstance(response.body, bytes)
    )


def result_from_response(response: web.StreamResponse) -> RenderResult:
    """Convert a handler's response to the ``RenderResult`` kept in the store.

    Per-transfer and per-client headers such as ``Set-Cookie`` are left out
    of the result; the live response is not modified.

    Raises:
        TypeError: If the response cannot be replayed (see ``is_replayable``).
    """
    if not is_replayable(response):
        raise TypeError(f"cannot cache a streamed response ({type(response).__name__})")

    body: str | bytes = response.body or b""
    content_type = response.content_type or ""
    if content_type.startswith("text/") or content_type in TEXT_CONTENT_TYPES:
        body = body.decode(response.charset or "utf-8", errors="replace")

    headers = {k: v for k, v in response.headers.items() if k.lower() not in UNCACHED_HEADERS}

    return RenderResult(
        body=body,
        status=response.status,
        headers=headers,
        error=response.reason if response.status >= 400 else None,
        redirected=300 <= response.status < 400,
    )


def response_from_result(result: RenderResult) -> web.Response:
    """Rebuild an aiohttp response from a cached result."""
    if isinstance(result.body, bytes):
        return web.Response(body=result.body, status=result.status, headers=result.headers)
    return web.Response(text=result.body, status=result.status, headers=result.headers)


class AiohttpRenderer:
    """Renderer that calls the aiohttp handler carried by the request context.

    The handler's own response is left on the request under
    ``LIVE_RESPONSE_KEY`` so the middleware can send it unchanged; the
    returned ``RenderResult`` is only what gets cached. Also holds the cache
    handle once the application has started.
    """

    def __init__(self, ready: bool = False):
        self.is_ready = ready
        self.cache: PageCache | None = None

    async def render(self, route: str, context: RequestContext) -> RenderResult:
        request = context.extra["request"]
        handler = context.extra["handler"]

        try:
            response = await handler(request)
        except web.HTTPRedirection as redirect:
            # Served by re-raising in the middleware, never cached
            response = redirect

        request[LIVE_RESPONSE_KEY] = response

        if not is_replayable(response):
            logger.debug("Not caching %s: %s is not replayable", route, type(response).__name__)
            return RenderResult(body=b"", status=response.status, error="response is not replayable")

        return result_from_response(response)


RENDERER_KEY = web.AppKey("pagecache_renderer", AiohttpRenderer)


def cache_middleware(renderer: AiohttpRenderer) -> Callable[..., Awaitable[web.StreamResponse]]:
    """Build a middleware routing cacheable GET and HEAD requests through ``renderer.cache``.

    Requests the cache does not apply to reach the handler directly. On a
    miss the handler's response is sent as is; only hits are rebuilt from
    the store.
    """

    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        cache = renderer.cache
        if cache is None or request.method not in ("GET", "HEAD"):
            return await handler(request)

        route = request.path_qs
        context = context_from_request(request, handler)
        if not cache.is_ready or not cache.cache_key(route, context).cacheable:
            return await handler(request)

        result = await cache.render(route, context)

        live = request.pop(LIVE_RESPONSE_KEY, None)
        if live is None:
            return response_from_result(result)
        if isinstance(live, web.HTTPException):
            raise live
        return live

    return middleware


def setup(app: web.Application, config: Any = None, **options: Any) -> AiohttpRenderer:
    """Install the page cache on ``app``.

    Args:
        app: Application to attach to; must not be frozen yet.
        config: ``CacheConfig`` or mapping, as accepted by ``page_cache``.
        **options: Configuration fields when ``config`` is omitted.

    Returns:
        The renderer, also stored as ``app[RENDERER_KEY]``. Its ``cache``
        is set and ``is_ready`` turns True during application startup.
    """
    renderer = AiohttpRenderer()

    async def on_startup(app: web.Application) -> None:
        renderer.cache = await page_cache(renderer, config, **options)
        if renderer.cache is None:
            logger.info("Page cache not installed, requests are served uncached")
        renderer.is_ready = True

    async def on_cleanup(app: web.Application) -> None:
        if renderer.cache is not None:
            await renderer.cache.close()
            renderer.cache = None

    app[RENDERER_KEY] = renderer
    app.middlewares.append(cache_middleware(renderer))
    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)
    return renderer
