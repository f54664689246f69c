"""
Background sweep of expired cache entries.

Runs as an explicit asyncio task tied to the application lifecycle:
`start()` on startup, `stop()` on shutdown.
"""

import asyncio
from typing import Optional

import structlog

from deck_orchestrator.cache.response_cache import ResponseCache
from deck_orchestrator.monitoring.metrics import cache_entries

logger = structlog.get_logger(__name__)


class CacheSweeper:
    """Periodically calls `ResponseCache.sweep()`."""

    def __init__(self, cache: ResponseCache, interval_seconds: float = 60.0):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.cache = cache
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="cache-sweeper")
        logger.info("Cache sweeper started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Cache sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            removed = self.cache.sweep()
            cache_entries.set(len(self.cache))
            if removed:
                logger.info("Expired cache entries evicted", removed=removed, remaining=len(self.cache))
