"""
Tests for configuration file loading and validation helpers.
"""

import math

import pytest

from pagecache.core.config import load_config, read_config_file
from pagecache.core.exceptions import ConfigurationError, ValidationError
from pagecache.core.models import PatternMatcher, PrefixMatcher, StoreConfig
from pagecache.core.validation import (
    MAX_KEY_LENGTH,
    validate_cache_key,
    validate_ttl,
    validate_version,
)


class TestLoadConfig:
    """Tests for TOML configuration loading."""

    def test_load(self, tmp_config_toml, tmp_cache_db):
        """Test every field of the [cache] table is read."""
        config = load_config(tmp_config_toml)

        assert config.version == "1.0.1"
        assert config.use_host_prefix is True
        assert config.pages[0] == PrefixMatcher("/blog")
        assert isinstance(config.pages[1], PatternMatcher)
        assert config.store == StoreConfig(type="sqlite", path=tmp_cache_db.as_posix(), ttl=600)

    def test_overrides(self, tmp_config_toml):
        """Test keyword overrides replace file values and None is ignored."""
        key = lambda path, ctx: path  # noqa: E731

        config = load_config(tmp_config_toml, version="2.0.0", key=key, is_cacheable=None)

        assert config.version == "2.0.0"
        assert config.key is key
        assert config.is_cacheable is None

    def test_document_without_cache_table(self, tmp_path):
        path = tmp_path / "bare.toml"
        path.write_text('pages = ["/news"]\n')

        assert load_config(path).pages == (PrefixMatcher("/news"),)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="does not exist"):
            read_config_file(tmp_path / "nope.toml")

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "broken.toml"
        path.write_text("[cache\npages = ")

        with pytest.raises(ConfigurationError, match="not valid TOML"):
            read_config_file(path)

    def test_cache_not_a_table(self, tmp_path):
        path = tmp_path / "odd.toml"
        path.write_text('cache = "yes"\n')

        with pytest.raises(ConfigurationError):
            read_config_file(path)

    def test_bad_store_type(self, tmp_path):
        """Test malformed values are rejected at load time."""
        path = tmp_path / "bad.toml"
        path.write_text('[cache]\npages = ["/"]\n\n[cache.store]\ntype = "memcached"\n')

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)
        assert exc_info.value.setting == "store.type"


class TestValidateTTL:
    """Tests for TTL validation."""

    def test_valid(self):
        assert validate_ttl(60) == 60.0
        assert validate_ttl(0.5) == 0.5

    def test_none_means_no_expiry(self):
        assert validate_ttl(None) is None

    @pytest.mark.parametrize("value", [0, -1, math.inf, math.nan, True, "60"])
    def test_invalid(self, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_ttl(value, "store.ttl")
        assert exc_info.value.field == "store.ttl"


class TestValidateCacheKey:
    """Tests for cache key validation."""

    def test_passthrough(self):
        assert validate_cache_key("example.com/a") == "example.com/a"

    def test_empty_is_none(self):
        assert validate_cache_key("") is None
        assert validate_cache_key(None) is None

    def test_too_long(self):
        with pytest.raises(ValidationError):
            validate_cache_key("x" * (MAX_KEY_LENGTH + 1))


class TestValidateVersion:
    """Tests for version normalization."""

    def test_strip(self):
        assert validate_version(" 1.0.1\n") == "1.0.1"

    def test_blank(self):
        assert validate_version("") is None
        assert validate_version(None) is None
