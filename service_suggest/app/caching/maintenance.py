"""
Daily size check for the suggestion cache.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Optional, TYPE_CHECKING

from shared.logging import get_logger
from .suggestion_cache import SuggestionCache

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


DEFAULT_MAX_SIZE_MB = 128.0


class CacheMaintenanceTask:
    """Flushes the whole cache once a day when it grows past a size threshold.

    There is no partial eviction: above the threshold every entry goes.
    """

    def __init__(
        self,
        cache: SuggestionCache,
        max_size_mb: float = DEFAULT_MAX_SIZE_MB,
        run_at_hour: int = 0,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.cache = cache
        self.max_size_mb = max_size_mb
        self.run_at_hour = run_at_hour
        self.metrics = metrics
        self.logger = get_logger("suggest.cache_maintenance")

        self.maintenance_task: Optional[asyncio.Task] = None
        self.running = False

    async def start(self):
        """Start the daily maintenance loop."""
        self.running = True
        self.maintenance_task = asyncio.create_task(self._maintenance_loop())
        self.logger.info(
            "Cache maintenance started",
            max_size_mb=self.max_size_mb,
            run_at_hour=self.run_at_hour,
        )

    async def stop(self):
        """Stop the maintenance loop."""
        self.running = False
        if self.maintenance_task:
            self.maintenance_task.cancel()
            try:
                await self.maintenance_task
            except asyncio.CancelledError:
                pass
            self.maintenance_task = None

        self.logger.info("Cache maintenance stopped")

    def check(self) -> bool:
        """Clear the cache if its estimated footprint exceeds the threshold.

        Returns True when the cache was flushed.
        """
        stats = self.cache.stats()
        size_mb = stats.size_mb
        if self.metrics:
            self.metrics.set_gauge("cache_size_megabytes", size_mb, cache_type="suggestions")

        if size_mb <= self.max_size_mb:
            self.logger.debug("Cache within size limit", size_mb=size_mb, keys=stats.keys)
            return False

        removed = self.cache.clear()
        if self.metrics:
            self.metrics.increment_counter("cache_flushes_total", cache_type="suggestions")
        self.logger.warning(
            "Cache exceeded size limit and was flushed",
            size_mb=round(size_mb, 3),
            max_size_mb=self.max_size_mb,
            removed=removed,
        )
        return True

    def seconds_until_next_run(self, now: Optional[datetime] = None) -> float:
        """Seconds from ``now`` to the next scheduled run."""
        now = now or datetime.now()
        next_run = now.replace(hour=self.run_at_hour, minute=0, second=0, microsecond=0)
        if next_run <= now:
            next_run += timedelta(days=1)
        return (next_run - now).total_seconds()

    async def _maintenance_loop(self):
        """Sleep until the scheduled time, then check the cache."""
        while self.running:
            try:
                await asyncio.sleep(self.seconds_until_next_run())
                self.check()
            except asyncio.CancelledError:
                break
            except Exception as e:
                self.logger.error("Error in cache maintenance loop", error=str(e))
                await asyncio.sleep(1)
