"""
Main CLI entry point for pagecache.

Provides commands for checking how a path would be cached, inspecting and
invalidating the configured store, and managing the version marker.
"""

import asyncio
import logging
import sys
from typing import Optional

import click

from pagecache import __version__
from pagecache.cache.factory import make_store
from pagecache.cli.output import (
    print_cache_key,
    print_error,
    print_info,
    print_stats,
    print_success,
    print_version_status,
    print_warning,
)
from pagecache.core.config import load_config
from pagecache.core.exceptions import PageCacheError
from pagecache.core.models import CacheConfig, RequestContext
from pagecache.core.policy import CachePolicy
from pagecache.core.version import VersionGuard


def run_async(coro):
    """Run an async coroutine to completion."""
    return asyncio.run(coro)


def _load(ctx: click.Context) -> CacheConfig:
    """Load the configuration named by --config, exiting on failure."""
    path = ctx.obj.get("config_path")
    if not path:
        print_error("No configuration file given. Use --config or set PAGECACHE_CONFIG.")
        sys.exit(2)

    try:
        return load_config(path, version=ctx.obj.get("version"))
    except PageCacheError as e:
        print_error(str(e))
        sys.exit(2)


@click.group()
@click.version_option(version=__version__, prog_name="pagecache")
@click.option(
    "--config", "-c",
    "config_path",
    envvar="PAGECACHE_CONFIG",
    type=click.Path(dir_okay=False),
    help="TOML file with a [cache] table.",
)
@click.option(
    "--app-version",
    envvar="PAGECACHE_VERSION",
    help="Override the application version from the config file.",
)
@click.option("--verbose", is_flag=True, help="Log cache operations to stderr.")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[str],
    app_version: Optional[str],
    verbose: bool,
) -> None:
    """pagecache - cache-aside layer for rendered pages.

    Inspect caching decisions and manage the page store described by a
    configuration file.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["version"] = app_version

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )


@cli.command()
@click.argument("path")
@click.option("--host", help="Hostname the request would arrive for.")
@click.option("--spa", is_flag=True, help="Treat the request as an SPA fallback.")
@click.pass_context
def check(ctx: click.Context, path: str, host: Optional[str], spa: bool) -> None:
    """Show whether PATH would be cached, and under which key.

    \b
    Examples:
        pagecache -c site.toml check /blog/post-1
        pagecache -c site.toml check /blog/post-1 --host example.com
    """
    config = _load(ctx)
    policy = CachePolicy(config)

    cache_key = policy.build_cache_key(path, RequestContext(hostname=host, spa=spa))
    print_cache_key(path, cache_key)


@cli.command()
@click.option("--stats", is_flag=True, help="Show store statistics.")
@click.option("--clear", is_flag=True, help="Remove every entry, including the version marker.")
@click.option("--get", "get_key", metavar="KEY", help="Show the entry stored under KEY.")
@click.option("--delete", "delete_key", metavar="KEY", help="Remove the entry stored under KEY.")
@click.option("--cleanup", is_flag=True, help="Remove expired entries (SQLite only).")
@click.option("--invalidate", metavar="PATTERN", help="Remove keys matching a LIKE pattern (SQLite only).")
@click.pass_context
def store(
    ctx: click.Context,
    stats: bool,
    clear: bool,
    get_key: Optional[str],
    delete_key: Optional[str],
    cleanup: bool,
    invalidate: Optional[str],
) -> None:
    """Inspect or invalidate the configured store.

    \b
    Examples:
        pagecache -c site.toml store --stats
        pagecache -c site.toml store --get example.com/blog/post-1
        pagecache -c site.toml store --delete /blog/post-1
        pagecache -c site.toml store --invalidate 'example.com/%'
        pagecache -c site.toml store --clear
    """
    config = _load(ctx)

    async def run() -> None:
        async with make_store(config.store) as backend:
            if clear:
                await backend.reset()
                print_success("Store cleared.")
            elif get_key:
                value = await backend.get(get_key)
                if value is None:
                    print_info(f"No entry for '{get_key}'.")
                else:
                    if isinstance(value, bytes):
                        value = value.decode("utf-8", errors="replace")
                    click.echo(value)
            elif delete_key:
                if await backend.delete(delete_key):
                    print_success(f"Deleted '{delete_key}'.")
                else:
                    print_info(f"No entry for '{delete_key}'.")
            elif cleanup or invalidate:
                await _prune(backend, cleanup, invalidate)
            elif stats:
                print_stats(await backend.stats())
            else:
                click.echo(ctx.get_help())

    try:
        run_async(run())
    except PageCacheError as e:
        print_error(str(e))
        sys.exit(1)


async def _prune(backend, cleanup: bool, invalidate: Optional[str]) -> None:
    """Run SQLite-specific maintenance on ``backend``."""
    from pagecache.cache.sqlite import SQLiteStore

    if not isinstance(backend, SQLiteStore):
        print_warning(f"--cleanup and --invalidate need a sqlite store, not {backend.name}.")
        return

    if cleanup:
        count = await backend.cleanup()
        print_success(f"Cleanup complete. Removed {count} expired entries.")
    else:
        count = await backend.invalidate(invalidate)
        print_success(f"Invalidated {count} entries matching '{invalidate}'.")


@cli.command()
@click.option("--reset", is_flag=True, help="Wipe the store now and write the configured version.")
@click.pass_context
def version(ctx: click.Context, reset: bool) -> None:
    """Show the stored version marker against the configured version.

    \b
    Examples:
        pagecache -c site.toml version
        pagecache -c site.toml --app-version 1.5.0 version --reset
    """
    config = _load(ctx)

    async def run() -> None:
        async with make_store(config.store) as backend:
            guard = VersionGuard(backend, config.version)
            if reset:
                await guard.force_reset()
                print_success("Store cleared.")
            print_version_status(await guard.read_marker(), guard.version)

    try:
        run_async(run())
    except PageCacheError as e:
        print_error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    cli()
