"""
SQLite-based store implementation.

Provides persistent caching of rendered pages with TTL-based expiration.
Each operation opens its own connection and runs in a worker thread so the
event loop is never blocked on disk I/O.
"""

import asyncio
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Optional, Union

from pagecache.cache.base import DEFAULT_TTL, Store
from pagecache.core.exceptions import StoreError


class SQLiteStore(Store):
    """SQLite-backed store for rendered pages.

    Entries with a NULL ``expires_at`` never expire.
    """

    name = "sqlite"

    def __init__(
        self,
        db_path: Optional[Union[Path, str]] = None,
        default_ttl: Optional[float] = None,
    ):
        """Initialize the SQLite store.

        Args:
            db_path: Path to SQLite database file. Defaults to ~/.pagecache/cache.db
            default_ttl: Default time-to-live in seconds for cached entries.
        """
        super().__init__(default_ttl)

        if db_path is None:
            db_path = Path.home() / ".pagecache" / "cache.db"

        self.db_path = Path(db_path)

        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_db()

    def _init_db(self) -> None:
        """Initialize the cache database schema."""
        try:
            with self._connection() as conn:
                conn.executescript("""
                    CREATE TABLE IF NOT EXISTS pages (
                        key TEXT PRIMARY KEY,
                        value BLOB NOT NULL,
                        created_at REAL NOT NULL,
                        expires_at REAL
                    );

                    CREATE INDEX IF NOT EXISTS idx_pages_expires
                    ON pages(expires_at);
                """)
        except sqlite3.Error as e:
            raise StoreError("initialization", str(e))

    @contextmanager
    def _connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection context manager.

        Yields:
            sqlite3.Connection that auto-commits on success.
        """
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError("database operation", str(e))
        finally:
            conn.close()

    async def get(self, key: str) -> Optional[bytes]:
        return await asyncio.to_thread(self._get, key)

    def _get(self, key: str) -> Optional[bytes]:
        try:
            with self._connection() as conn:
                row = conn.execute(
                    """
                    SELECT value FROM pages
                    WHERE key = ? AND (expires_at IS NULL OR expires_at > ?)
                    """,
                    (key, time.time()),
                ).fetchone()
                return bytes(row["value"]) if row else None

        except sqlite3.Error as e:
            raise StoreError("get", str(e))

    async def set(self, key: str, value: bytes, ttl: Any = DEFAULT_TTL) -> None:
        await asyncio.to_thread(self._set, key, value, self._resolve_ttl(ttl))

    def _set(self, key: str, value: bytes, ttl: Optional[float]) -> None:
        now = time.time()
        expires_at = now + ttl if ttl is not None else None

        try:
            with self._connection() as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO pages (key, value, created_at, expires_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (key, sqlite3.Binary(value), now, expires_at),
                )

        except sqlite3.Error as e:
            raise StoreError("set", str(e))

    async def delete(self, key: str) -> bool:
        return await asyncio.to_thread(self._delete, key)

    def _delete(self, key: str) -> bool:
        try:
            with self._connection() as conn:
                cursor = conn.execute("DELETE FROM pages WHERE key = ?", (key,))
                return cursor.rowcount > 0

        except sqlite3.Error as e:
            raise StoreError("delete", str(e))

    async def invalidate(self, pattern: str) -> int:
        """Invalidate entries whose key matches a SQL LIKE pattern.

        Args:
            pattern: SQL LIKE pattern (e.g., "example.com/%" for one host).

        Returns:
            Number of entries deleted.
        """
        return await asyncio.to_thread(self._invalidate, pattern)

    def _invalidate(self, pattern: str) -> int:
        try:
            with self._connection() as conn:
                cursor = conn.execute("DELETE FROM pages WHERE key LIKE ?", (pattern,))
                return cursor.rowcount

        except sqlite3.Error as e:
            raise StoreError("invalidate", str(e))

    async def cleanup(self) -> int:
        """Remove expired entries.

        Returns:
            Number of entries removed.
        """
        return await asyncio.to_thread(self._cleanup)

    def _cleanup(self) -> int:
        try:
            with self._connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM pages WHERE expires_at IS NOT NULL AND expires_at <= ?",
                    (time.time(),),
                )
                return cursor.rowcount

        except sqlite3.Error as e:
            raise StoreError("cleanup", str(e))

    async def reset(self) -> None:
        await self.invalidate("%")

    async def stats(self) -> dict[str, Any]:
        return await asyncio.to_thread(self._stats)

    def _stats(self) -> dict[str, Any]:
        try:
            with self._connection() as conn:
                total = conn.execute("SELECT COUNT(*) FROM pages").fetchone()[0]

                valid = conn.execute(
                    "SELECT COUNT(*) FROM pages WHERE expires_at IS NULL OR expires_at > ?",
                    (time.time(),),
                ).fetchone()[0]

                db_size = self.db_path.stat().st_size if self.db_path.exists() else 0

                return {
                    "backend": self.name,
                    "default_ttl": self.default_ttl,
                    "total_entries": total,
                    "valid_entries": valid,
                    "expired_entries": total - valid,
                    "db_size_bytes": db_size,
                    "db_path": str(self.db_path),
                }

        except sqlite3.Error as e:
            raise StoreError("stats", str(e))
