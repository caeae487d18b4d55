"""
Configuration file loading.

Reads a TOML file whose ``[cache]`` table mirrors ``CacheConfig``::

    [cache]
    version = "1.4.2"
    use_host_prefix = true
    pages = ["/blog", { pattern = "^/docs/[a-z-]+$" }]

    [cache.store]
    type = "sqlite"
    path = "/var/cache/site/pages.db"
    ttl = 600

Callables (``is_cacheable``, ``key``) cannot be expressed in TOML; pass them
as overrides.
"""

import sys
from pathlib import Path
from typing import Any

from pagecache.core.exceptions import ConfigurationError
from pagecache.core.models import CacheConfig

# Handle tomli import for Python 3.10 vs 3.11+
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


def read_config_file(path: Path | str) -> dict[str, Any]:
    """Read the cache table from a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        The ``[cache]`` table, or the whole document if it has none.

    Raises:
        ConfigurationError: If the file is missing or not valid TOML.
    """
    path = Path(path)
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        raise ConfigurationError("config file", f"{path} does not exist")
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError("config file", f"{path} is not valid TOML: {e}")

    table = data.get("cache", data)
    if not isinstance(table, dict):
        raise ConfigurationError("cache", "expected a table")
    return table


def load_config(path: Path | str, **overrides: Any) -> CacheConfig:
    """Build a ``CacheConfig`` from a TOML file.

    Args:
        path: Path to the TOML file.
        **overrides: Fields replacing those read from the file, e.g.
            ``key=my_key_function``. None values are ignored.

    Returns:
        The parsed configuration.
    """
    data = read_config_file(path)
    data.update({k: v for k, v in overrides.items() if v is not None})
    return CacheConfig.from_dict(data)
