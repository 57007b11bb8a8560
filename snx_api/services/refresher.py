"""Background refresh of prefetched metrics."""

import asyncio
from typing import Dict, Iterable, List, Optional

import structlog

from snx_api.handlers.base import MetricHandler
from snx_api.utils.metrics import metrics

logger = structlog.get_logger(__name__)


class BackgroundRefresher:
    """Keeps prefetched metrics warm.

    One asyncio task per (handler, parameter set). Each task refreshes
    immediately, then again every interval. A failed refresh is logged and
    the previous cache entry is left alone.

    The interval runs 30 seconds ahead of the metric's effective TTL, never
    below 30 seconds. max_interval can only shorten it.
    """

    def __init__(self, handlers: Iterable[MetricHandler], max_interval: Optional[int] = None):
        self.handlers = [h for h in handlers if h.refresh_params]
        self.max_interval = max_interval
        self._tasks: List[asyncio.Task] = []
        self.logger = logger.bind(component="refresher")

    def interval_for(self, handler: MetricHandler) -> int:
        interval = max(30, handler.gate.effective_ttl(handler.ttl_seconds) - 30)
        if self.max_interval:
            interval = min(interval, self.max_interval)
        return interval

    def start(self):
        if self._tasks:
            return

        for handler in self.handlers:
            interval = self.interval_for(handler)
            for params in handler.refresh_params:
                task = asyncio.create_task(
                    self._run(handler, params, interval),
                    name=f"refresh:{handler.name}",
                )
                self._tasks.append(task)

        self.logger.info("Background refresher started",
                         tasks=len(self._tasks),
                         metrics=[h.name for h in self.handlers])

    async def stop(self):
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self.logger.info("Background refresher stopped")

    async def refresh_once(self, handler: MetricHandler, params: Optional[Dict[str, str]] = None) -> bool:
        """Refresh one metric. Returns False if the computation failed."""

        try:
            await handler.refresh(params)
        except Exception as e:
            self.logger.error("Refresh failed",
                              metric=handler.name,
                              params=params,
                              error=str(e),
                              exc_info=True)
            metrics.refresh_runs.labels(metric=handler.name, status="failed").inc()
            return False

        self.logger.debug("Metric refreshed", metric=handler.name, params=params)
        metrics.refresh_runs.labels(metric=handler.name, status="ok").inc()
        return True

    async def _run(self, handler: MetricHandler, params: Dict[str, str], interval: int):
        while True:
            await self.refresh_once(handler, params)
            await asyncio.sleep(interval)
