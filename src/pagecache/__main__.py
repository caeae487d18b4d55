"""
CLI entry point for running pagecache as a module.

Usage: python -m pagecache [OPTIONS] COMMAND [ARGS]...
"""

from pagecache.cli.main import cli

if __name__ == "__main__":
    cli()
