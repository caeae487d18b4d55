"""
Rich terminal output helpers for CLI.

Provides functions for printing tables and status messages using the Rich
library.
"""

from typing import Any

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from pagecache.core.models import CacheKey

# Console instance for all output
console = Console()


def format_ttl(ttl: float | None) -> str:
    """Format a TTL in seconds for display."""
    if ttl is None:
        return "no expiry"
    if ttl >= 3600 and ttl % 3600 == 0:
        return f"{ttl / 3600:.0f}h"
    if ttl >= 60 and ttl % 60 == 0:
        return f"{ttl / 60:.0f}m"
    return f"{ttl:g}s"


def print_cache_key(path: str, cache_key: CacheKey) -> None:
    """Print the caching decision for a path.

    Args:
        path: The request path that was checked.
        cache_key: Result of the cache key policy.
    """
    table = Table(box=box.ROUNDED, show_header=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")

    table.add_row("Path", path)
    if cache_key.cacheable:
        table.add_row("Cacheable", Text("yes", style="green"))
        table.add_row("Key", cache_key.key)
        table.add_row("TTL", format_ttl(cache_key.ttl))
    else:
        table.add_row("Cacheable", Text("no", style="red"))

    console.print(table)


def print_stats(stats: dict[str, Any], title: str = "Cache Statistics") -> None:
    """Print store statistics as a two-column table.

    Nested tiers of a multi store are printed as separate tables.
    """
    table = Table(title=title, box=box.ROUNDED, show_header=True, header_style="bold cyan")
    table.add_column("Statistic", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right")

    for name, value in stats.items():
        if name == "tiers":
            continue
        if name == "default_ttl":
            value = format_ttl(value)
        elif name == "db_size_bytes":
            name, value = "db_size", f"{value / 1024:.1f} KB"
        table.add_row(name.replace("_", " "), "-" if value is None else str(value))

    console.print(table)

    for i, tier in enumerate(stats.get("tiers", ()), start=1):
        print_stats(tier, title=f"Tier {i}")


def print_version_status(stored: str | None, configured: str | None) -> None:
    """Print stored and configured application versions."""
    table = Table(box=box.ROUNDED, show_header=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")

    table.add_row("Configured version", configured or Text("(none)", style="dim"))
    table.add_row("Stored marker", stored or Text("(none)", style="dim"))

    if not configured:
        status = Text("version guard disabled", style="dim")
    elif stored == configured:
        status = Text("up to date", style="green")
    else:
        status = Text("stale, cache will be reset on next start", style="yellow")
    table.add_row("Status", status)

    console.print(table)


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[bold yellow]Warning:[/] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[cyan]Info:[/] {message}")
