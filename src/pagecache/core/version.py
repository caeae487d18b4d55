"""
Version guard: wipes the cache when a new application build is deployed.

The last deployed version is kept in the store under a reserved key. At
startup the guard compares it with the running version and resets the store
on mismatch. The new marker is written later, on the first request, and
only after the reset has finished so that a slow wipe cannot delete it.

Limitations:
    - A failed marker read skips the reset rather than risk wiping the
      store on every transient backend error.
    - Only one process is coordinated. Several instances starting with a
      new version may each reset the store once.
"""

import asyncio
import logging

from pagecache.cache.base import Store
from pagecache.core.models import VERSION_KEY
from pagecache.core.tasks import BackgroundTasks
from pagecache.core.validation import validate_version

logger = logging.getLogger(__name__)


class VersionGuard:
    """Startup invalidation keyed on the application version."""

    def __init__(
        self,
        store: Store,
        version: str | None,
        tasks: BackgroundTasks | None = None,
        marker_key: str = VERSION_KEY,
    ):
        self.store = store
        self.version = validate_version(version)
        self.marker_key = marker_key
        self.tasks = tasks if tasks is not None else BackgroundTasks()

        # Moves False -> True once the marker write has succeeded
        self.version_saved = False
        self._reset_task: asyncio.Task | None = None

    async def read_marker(self) -> str | None:
        """Return the version stored in the cache, or None if absent."""
        value = await self.store.get(self.marker_key)
        if not value:
            return None
        # Redis clients created with decode_responses=True return str
        if isinstance(value, str):
            return value
        return value.decode("utf-8", errors="replace")

    async def ensure_fresh_cache(self) -> bool:
        """Reset the store if it was populated by another version.

        The reset runs in the background; this coroutine returns as soon as
        it has been started.

        Returns:
            True if a reset was started.
        """
        if not self.version:
            return False

        try:
            stored = await self.read_marker()
        except Exception as e:
            logger.warning("Could not read cache version marker, skipping reset: %s", e)
            return False

        if stored == self.version:
            self.version_saved = True
            return False

        logger.info("Cache updated from %s to %s", stored, self.version)
        self.version_saved = False
        self._reset_task = self.tasks.spawn(self._reset(), "cache reset")
        return True

    async def _reset(self) -> None:
        try:
            await self.store.reset()
        except Exception:
            logger.warning("Cache reset after version change failed", exc_info=True)
            raise

    async def persist_version_once(self) -> None:
        """Write the version marker unless it is already saved.

        Waits for a pending reset first. If that reset failed the marker is
        left unwritten so the next start retries the wipe. Safe to call on
        every request; concurrent first calls may write twice.

        Raises:
            StoreError: If the marker write fails. ``version_saved`` stays
                False and the next call retries.
        """
        if not self.version or self.version_saved:
            return

        if self._reset_task is not None:
            try:
                await self._reset_task
            except Exception:
                return

        await self.store.set(self.marker_key, self.version.encode("utf-8"), ttl=None)
        self.version_saved = True
        logger.debug("Saved cache version marker %s", self.version)

    async def force_reset(self) -> None:
        """Wipe the store now and write the current marker immediately."""
        await self.store.reset()
        self._reset_task = None
        self.version_saved = False
        await self.persist_version_once()
