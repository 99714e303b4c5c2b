"""
Fire-and-forget task tracking for work that outlives a request.
"""

import asyncio
from typing import Awaitable, Optional, Set

from shared.logging import get_logger


class BackgroundTaskRunner:
    """Runs coroutines as detached tasks and keeps them referenced until done.

    Callers never await what they schedule. ``settle`` lets tests and shutdown
    wait for everything in flight without relying on timing.
    """

    def __init__(self):
        self.logger = get_logger("suggest.background")
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(self, coro: Awaitable, name: Optional[str] = None) -> asyncio.Task:
        """Start ``coro`` on the running loop without waiting for it."""
        task = asyncio.ensure_future(coro)
        if name:
            task.set_name(name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.logger.error(
                "Background task failed",
                task=task.get_name(),
                error=str(exc),
                exc_info=exc,
            )

    async def settle(self):
        """Wait until no scheduled task is pending, including ones scheduled meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
            # Let done callbacks run before re-checking
            await asyncio.sleep(0)

    async def close(self):
        """Cancel pending tasks and wait for them to finish."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            self.logger.info("Cancelled pending background tasks", count=len(tasks))
