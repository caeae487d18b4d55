"""
Fire-and-forget task tracking.

Store writes and version-marker writes run in the background so they never
delay a response. Their tasks are kept here so they are not garbage
collected mid-flight, their exceptions are always retrieved, and callers
can wait for them on shutdown.
"""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Set of in-flight background tasks."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], description: str) -> asyncio.Task:
        """Schedule ``coro`` without awaiting it.

        Args:
            coro: Coroutine to run.
            description: Short label used when logging a failure.

        Returns:
            The scheduled task.
        """
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._finished(t, description))
        return task

    def _finished(self, task: asyncio.Task, description: str) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug("Background %s failed: %s", description, exc)

    async def wait(self) -> None:
        """Wait until every task spawned so far, and any they spawn, is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def __len__(self) -> int:
        return len(self._tasks)
