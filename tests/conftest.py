"""
Pytest fixtures and configuration for pagecache tests.

Provides a fake renderer, stores and sample configuration.
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from pagecache.cache.base import DEFAULT_TTL
from pagecache.cache.memory import MemoryStore
from pagecache.core.models import CacheConfig, RenderResult, RequestContext, StoreConfig

# =============================================================================
# Collaborators
# =============================================================================


class FakeRenderer:
    """Renderer that records every route it renders."""

    def __init__(self, result: RenderResult | None = None, error: Exception | None = None):
        self.is_ready = True
        self.calls: list[str] = []
        self.result = result
        self.error = error

    async def render(self, route: str, context: RequestContext) -> RenderResult:
        self.calls.append(route)
        if self.error is not None:
            raise self.error
        if self.result is not None:
            return self.result
        return RenderResult(
            body=f"<html><body>{route}</body></html>",
            headers={"Content-Type": "text/html; charset=utf-8"},
        )


class CountingStore(MemoryStore):
    """Memory store that counts resets and writes."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.resets = 0
        self.writes: list[tuple[str, object]] = []

    async def reset(self) -> None:
        self.resets += 1
        await super().reset()

    async def set(self, key, value, ttl=DEFAULT_TTL):
        self.writes.append((key, ttl))
        await super().set(key, value, ttl)


@pytest.fixture
def renderer() -> FakeRenderer:
    """Create a ready fake renderer."""
    return FakeRenderer()


@pytest.fixture
def memory_store() -> MemoryStore:
    """Create an unbounded memory store with a 60 second default TTL."""
    return MemoryStore(default_ttl=60)


@pytest.fixture
def failing_store() -> MagicMock:
    """Create a store whose every operation fails."""
    from pagecache.core.exceptions import StoreError

    store = MagicMock()
    store.default_ttl = 60
    store.get = AsyncMock(side_effect=StoreError("get", "connection refused"))
    store.set = AsyncMock(side_effect=StoreError("set", "connection refused"))
    store.reset = AsyncMock(side_effect=StoreError("reset", "connection refused"))
    store.close = AsyncMock()
    return store


# =============================================================================
# Test Data Fixtures
# =============================================================================


@pytest.fixture
def context() -> RequestContext:
    """Create a request context for example.com."""
    return RequestContext(hostname="example.com", headers={"Host": "example.com"})


@pytest.fixture
def spa_context() -> RequestContext:
    """Create a request context flagged as an SPA fallback."""
    return RequestContext(hostname="example.com", spa=True)


@pytest.fixture
def blog_config() -> CacheConfig:
    """Create a config caching everything under /blog for 60 seconds."""
    return CacheConfig(pages=("/blog",), store=StoreConfig(ttl=60))


@pytest.fixture
def sample_result() -> RenderResult:
    """Create a successful render result."""
    return RenderResult(
        body="<html><body>Hello</body></html>",
        status=200,
        headers={"Content-Type": "text/html; charset=utf-8"},
    )


# =============================================================================
# File Fixtures
# =============================================================================


@pytest.fixture
def tmp_cache_db(tmp_path: Path) -> Path:
    """Create a temporary cache database path."""
    return tmp_path / "test_cache.db"


@pytest.fixture
def tmp_config_toml(tmp_path: Path, tmp_cache_db: Path) -> Path:
    """Create a TOML config file backed by a temporary SQLite store."""
    content = f"""
[cache]
version = "1.0.1"
use_host_prefix = true
pages = ["/blog", {{ pattern = "^/docs/[a-z-]+$" }}]

[cache.store]
type = "sqlite"
path = "{tmp_cache_db.as_posix()}"
ttl = 600
"""
    file_path = tmp_path / "pagecache.toml"
    file_path.write_text(content)
    return file_path
