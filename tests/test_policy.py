"""
Tests for the cache key policy.
"""

import logging
import re

from pagecache.core.models import CacheConfig, CacheKey, RequestContext, StoreConfig
from pagecache.core.policy import NOT_CACHEABLE, CachePolicy
from pagecache.core.validation import MAX_KEY_LENGTH


class TestIsCacheable:
    """Tests for the cacheability decision."""

    def test_allowlisted_prefix(self, blog_config, context):
        """Test paths under an allowlisted prefix are cacheable."""
        policy = CachePolicy(blog_config)
        assert policy.is_cacheable("/blog/post-1", context)
        assert not policy.is_cacheable("/admin", context)

    def test_spa_never_cacheable(self, blog_config, spa_context):
        """Test SPA fallbacks are excluded even when the path matches."""
        policy = CachePolicy(blog_config)
        assert not policy.is_cacheable("/blog/post-1", spa_context)

    def test_pattern_entry(self, context):
        """Test regex entries in the allowlist."""
        policy = CachePolicy(CacheConfig(pages=[re.compile(r"^/docs/[a-z-]+$")]))
        assert policy.is_cacheable("/docs/intro", context)
        assert not policy.is_cacheable("/docs/Intro", context)

    def test_predicate_overrides_allowlist(self, context):
        """Test a custom predicate is the sole decider."""
        seen = []

        def predicate(path, ctx):
            seen.append((path, ctx))
            return path == "/admin"

        policy = CachePolicy(CacheConfig(pages=["/blog"], is_cacheable=predicate))

        assert policy.is_cacheable("/admin", context)
        assert not policy.is_cacheable("/blog/post-1", context)
        assert seen[0] == ("/admin", context)

    def test_predicate_sees_spa_requests(self, spa_context):
        """Test SPA exclusion applies only to the allowlist."""
        policy = CachePolicy(CacheConfig(is_cacheable=lambda path, ctx: True))
        assert policy.is_cacheable("/app", spa_context)

    def test_predicate_truthiness(self, context):
        """Test predicate results are interpreted as booleans."""
        policy = CachePolicy(CacheConfig(is_cacheable=lambda path, ctx: "yes"))
        assert policy.is_cacheable("/x", context) is True


class TestResolveHostname:
    """Tests for hostname resolution order."""

    def test_hostname_first(self):
        ctx = RequestContext(hostname="a.test", host="b.test", headers={"Host": "c.test"})
        assert CachePolicy.resolve_hostname(ctx) == "a.test"

    def test_host_second(self):
        ctx = RequestContext(host="b.test:8080", headers={"Host": "c.test"})
        assert CachePolicy.resolve_hostname(ctx) == "b.test:8080"

    def test_header_last(self):
        ctx = RequestContext(headers={"host": "c.test"})
        assert CachePolicy.resolve_hostname(ctx) == "c.test"

    def test_empty_values_skipped(self):
        ctx = RequestContext(hostname="", host="", headers={"Host": ""})
        assert CachePolicy.resolve_hostname(ctx) is None


class TestBuildCacheKey:
    """Tests for key and TTL derivation."""

    def test_path_key_with_store_ttl(self, blog_config, context):
        """Test the default key is the path and the TTL is the store default."""
        policy = CachePolicy(blog_config)

        assert policy.build_cache_key("/blog/post-1", context) == CacheKey("/blog/post-1", 60)

    def test_not_cacheable(self, blog_config, context):
        """Test non-matching paths get no key."""
        policy = CachePolicy(blog_config)

        result = policy.build_cache_key("/admin", context)

        assert result is NOT_CACHEABLE
        assert result.key is None

    def test_explicit_default_ttl(self, context):
        """Test an explicit default TTL wins over the config."""
        policy = CachePolicy(CacheConfig(pages=["/"]), default_ttl=15)
        assert policy.build_cache_key("/a", context).ttl == 15

    def test_no_store_ttl(self, context):
        """Test a store without a default TTL yields entries that never expire."""
        policy = CachePolicy(CacheConfig(pages=["/"]))
        assert policy.build_cache_key("/a", context) == CacheKey("/a", None)

    def test_host_prefix(self, context):
        """Test host-prefixed keys join hostname and path."""
        policy = CachePolicy(CacheConfig(pages=["/"], use_host_prefix=True))

        assert policy.build_cache_key("/a", context).key == "example.com/a"
        assert policy.build_cache_key("/blog/post-1", context).key == "example.com/blog/post-1"

    def test_host_prefix_root(self, context):
        """Test the root path keys to the bare hostname."""
        policy = CachePolicy(CacheConfig(pages=["/"], use_host_prefix=True))
        assert policy.build_cache_key("/", context).key == "example.com/"

    def test_host_prefix_without_hostname(self):
        """Test host-prefixed keys are not built without a hostname."""
        policy = CachePolicy(CacheConfig(pages=["/"], use_host_prefix=True))
        assert policy.build_cache_key("/a", RequestContext()).key is None

    def test_host_prefix_off_ignores_hostname(self, context):
        """Test the path alone is the key when the prefix is off."""
        policy = CachePolicy(CacheConfig(pages=["/"]))
        assert policy.build_cache_key("/a", context).key == "/a"
        assert policy.build_cache_key("/a", RequestContext()).key == "/a"

    def test_different_hosts_different_keys(self):
        """Test the same path on two hosts does not collide."""
        policy = CachePolicy(CacheConfig(pages=["/"], use_host_prefix=True))

        first = policy.build_cache_key("/a", RequestContext(hostname="one.test"))
        second = policy.build_cache_key("/a", RequestContext(hostname="two.test"))

        assert first.key != second.key

    def test_query_string_is_part_of_key(self, context):
        """Test the route is used verbatim, query string included."""
        policy = CachePolicy(CacheConfig(pages=["/search"]))
        assert policy.build_cache_key("/search?q=a", context).key == "/search?q=a"


class TestCustomKey:
    """Tests for user-supplied key functions."""

    def _policy(self, key, ttl=60):
        return CachePolicy(CacheConfig(pages=["/"], key=key, store=StoreConfig(ttl=ttl)))

    def test_string_result(self, context):
        """Test a plain string key uses the store TTL."""
        policy = self._policy(lambda path, ctx: f"page:{path}")
        assert policy.build_cache_key("/a", context) == CacheKey("page:/a", 60)

    def test_mapping_with_ttl(self, context):
        """Test a mapping result supplies both key and TTL."""
        policy = self._policy(lambda path, ctx: {"key": "k", "ttl": 5})
        assert policy.build_cache_key("/a", context) == CacheKey("k", 5)

    def test_mapping_without_ttl(self, context):
        """Test a mapping without a TTL falls back to the store default."""
        policy = self._policy(lambda path, ctx: {"key": "k"})
        assert policy.build_cache_key("/a", context) == CacheKey("k", 60)

    def test_mapping_with_none_ttl(self, context):
        """Test an explicit None TTL means the entry never expires."""
        policy = self._policy(lambda path, ctx: {"key": "k", "ttl": None})
        assert policy.build_cache_key("/a", context) == CacheKey("k", None)

    def test_cache_key_result(self, context):
        """Test a CacheKey result is used as is."""
        policy = self._policy(lambda path, ctx: CacheKey("k", 30))
        assert policy.build_cache_key("/a", context) == CacheKey("k", 30)

    def test_cache_key_without_ttl_never_expires(self, context):
        """Test a bare CacheKey is not given the store default TTL."""
        policy = self._policy(lambda path, ctx: CacheKey("k"))
        assert policy.build_cache_key("/a", context) == CacheKey("k", None)

    def test_none_or_empty_skips_caching(self, context):
        """Test None and empty keys mean the request is not cached."""
        assert not self._policy(lambda path, ctx: None).build_cache_key("/a", context).cacheable
        assert not self._policy(lambda path, ctx: "").build_cache_key("/a", context).cacheable
        assert not self._policy(lambda path, ctx: {"key": ""}).build_cache_key("/a", context).cacheable

    def test_non_string_key(self, context):
        """Test non-string keys are converted."""
        policy = self._policy(lambda path, ctx: 42)
        assert policy.build_cache_key("/a", context).key == "42"

    def test_receives_context(self, context):
        """Test the key function sees the request context."""
        policy = self._policy(lambda path, ctx: f"{ctx.hostname}{path}")
        assert policy.build_cache_key("/a", context).key == "example.com/a"

    def test_not_called_for_uncacheable_paths(self, context):
        """Test the key function only runs for cacheable requests."""
        calls = []
        policy = CachePolicy(CacheConfig(pages=["/blog"], key=lambda p, c: calls.append(p) or p))

        policy.build_cache_key("/admin", context)

        assert calls == []

    def test_invalid_ttl_skips_caching(self, context, caplog):
        """Test an unusable TTL is logged and the request is not cached."""
        policy = self._policy(lambda path, ctx: {"key": "k", "ttl": -1})

        with caplog.at_level(logging.WARNING, logger="pagecache.core.policy"):
            result = policy.build_cache_key("/a", context)

        assert result.key is None
        assert "Not caching /a" in caplog.text

    def test_overlong_key_skips_caching(self, context):
        """Test keys beyond the length limit are not cached."""
        policy = self._policy(lambda path, ctx: "k" * (MAX_KEY_LENGTH + 1))
        assert policy.build_cache_key("/a", context).key is None
