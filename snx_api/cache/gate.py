"""Read-through cache gate.

The gate owns every cache write. Request handlers and the background
refresher both go through get_or_compute; the refresher only differs in
passing force_recompute=True.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional

import structlog

from snx_api.cache.store import CacheEntry, CacheStore
from snx_api.core.exceptions import CacheError
from snx_api.utils.metrics import metrics

logger = structlog.get_logger(__name__)

Compute = Callable[[], Awaitable[Any]]


class CacheGate:
    """get / compute-on-miss / set-with-ttl over a CacheStore.

    Without single_flight two requests racing on one miss both compute and
    both write; the last write wins. With single_flight, concurrent misses
    on a key inside this process share one computation.

    Store failures never fail a request: a failed read is a miss and a
    failed write is dropped.
    """

    def __init__(self, store: CacheStore, ttl_override: Optional[int] = None,
                 single_flight: bool = False, clock: Callable[[], float] = time.time):
        self.store = store
        self.ttl_override = ttl_override
        self.single_flight = single_flight
        self._clock = clock
        self._inflight: Dict[str, asyncio.Task] = {}
        self.logger = logger.bind(component="cache_gate")

    def effective_ttl(self, ttl_seconds: int) -> int:
        return self.ttl_override or ttl_seconds

    async def get_or_compute(self, key: str, ttl_seconds: int, compute: Compute,
                             force_recompute: bool = False) -> Any:
        """
        Return the live cached value for key, computing and storing it on miss.

        Args:
            key: MetricKey
            ttl_seconds: Freshness window for a newly stored value
            compute: Coroutine function producing a JSON-serializable value
            force_recompute: Skip the lookup and always recompute and store

        Returns:
            Cached or freshly computed value

        Raises:
            Whatever compute raises; nothing is cached in that case.
        """
        metric = key.split(":", 1)[0]

        if not force_recompute:
            entry = await self._read(key)
            if entry is not None:
                self.logger.debug("Cache found", key=key)
                metrics.cache_hits.labels(metric=metric).inc()
                return entry.value

        self.logger.debug("Cache not found, executing..", key=key, forced=force_recompute)
        metrics.cache_misses.labels(metric=metric).inc()

        if not self.single_flight:
            return await self._compute_and_store(key, ttl_seconds, compute)

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._compute_and_store(key, ttl_seconds, compute))
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._settle(key, done))
        else:
            self.logger.debug("Joining in-flight computation", key=key)
        return await asyncio.shield(task)

    def _settle(self, key: str, task: asyncio.Task) -> None:
        self._inflight.pop(key, None)
        # Waiters may all have been cancelled; consume the outcome here.
        if not task.cancelled() and task.exception() is not None:
            self.logger.debug("In-flight computation failed", key=key, error=str(task.exception()))

    async def _compute_and_store(self, key: str, ttl_seconds: int, compute: Compute) -> Any:
        value = await compute()
        entry = CacheEntry(key=key, value=value, stored_at=self._clock(),
                           ttl_seconds=self.effective_ttl(ttl_seconds))
        await self._write(entry)
        return value

    async def _read(self, key: str) -> Optional[CacheEntry]:
        try:
            raw = await self.store.get(key)
            if raw is None:
                return None
            entry = CacheEntry.from_json(key, raw)
        except CacheError as e:
            self.logger.warning("Cache read failed, treating as miss", key=key, error=str(e))
            metrics.cache_errors.labels(operation="get").inc()
            return None

        if entry.is_expired(self._clock()):
            self.logger.debug("Cache entry expired", key=key, stored_at=entry.stored_at)
            return None
        return entry

    async def _write(self, entry: CacheEntry) -> None:
        self.logger.debug("Setting cache..", key=entry.key, ttl=entry.ttl_seconds)
        try:
            await self.store.set(entry.key, entry.to_json(), entry.ttl_seconds)
        except CacheError as e:
            self.logger.warning("Cache write failed, dropping", key=entry.key, error=str(e))
            metrics.cache_errors.labels(operation="set").inc()
