"""
Command-line interface for pagecache.

Provides Click-based commands for checking caching decisions and
managing the page store.
"""

from pagecache.cli.main import cli

__all__ = ["cli"]
