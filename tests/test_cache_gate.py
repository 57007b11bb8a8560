"""Tests for the read-through cache gate."""

import asyncio
import gc
import json
from typing import Dict, Optional
from unittest.mock import AsyncMock

import pytest

from snx_api.cache.gate import CacheGate
from snx_api.cache.store import CacheStore
from snx_api.core.exceptions import CacheError, NetworkError


class KeepForeverStore(CacheStore):
    """Store that never evicts, so freshness is decided by the gate alone."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl: int) -> None:
        self.data[key] = value
        self.ttls[key] = ttl


class BrokenStore(CacheStore):
    async def get(self, key: str) -> Optional[str]:
        raise CacheError("connection refused")

    async def set(self, key: str, value: str, ttl: int) -> None:
        raise CacheError("connection refused")


class TestReadThrough:
    """Test hit, miss and expiry behavior."""

    @pytest.mark.asyncio
    async def test_miss_computes_and_stores(self, gate, memory_store):
        compute = AsyncMock(return_value={"totalSupply": "100"})

        value = await gate.get_or_compute("total-supply", 60, compute)

        assert value == {"totalSupply": "100"}
        compute.assert_awaited_once()
        assert len(memory_store) == 1

    @pytest.mark.asyncio
    async def test_repeated_reads_within_ttl_do_not_recompute(self, gate):
        compute = AsyncMock(return_value={"totalSupply": "100"})

        first = await gate.get_or_compute("total-supply", 60, compute)
        second = await gate.get_or_compute("total-supply", 60, compute)
        third = await gate.get_or_compute("total-supply", 60, compute)

        assert first == second == third
        assert json.dumps(first) == json.dumps(third)
        assert compute.await_count == 1

    @pytest.mark.asyncio
    async def test_expired_entry_is_recomputed_even_if_store_keeps_it(self, clock):
        store = KeepForeverStore()
        gate = CacheGate(store, clock=clock)
        compute = AsyncMock(side_effect=[{"v": "1"}, {"v": "2"}])

        assert await gate.get_or_compute("tvl", 60, compute) == {"v": "1"}
        clock.advance(30)
        assert await gate.get_or_compute("tvl", 60, compute) == {"v": "1"}
        clock.advance(31)
        assert await gate.get_or_compute("tvl", 60, compute) == {"v": "2"}
        assert compute.await_count == 2

    @pytest.mark.asyncio
    async def test_keys_are_independent(self, gate):
        compute_base = AsyncMock(return_value="1")
        compute_mainnet = AsyncMock(return_value="2")

        assert await gate.get_or_compute("sc-pool-apy-all:chain=base", 60, compute_base) == "1"
        assert await gate.get_or_compute("sc-pool-apy-all:chain=mainnet", 60, compute_mainnet) == "2"
        compute_base.assert_awaited_once()
        compute_mainnet.assert_awaited_once()


class TestFailures:
    """Test that failures are neither cached nor surfaced from the store."""

    @pytest.mark.asyncio
    async def test_failed_compute_is_not_cached(self, gate, memory_store):
        compute = AsyncMock(side_effect=[NetworkError("down"), {"v": "ok"}])

        with pytest.raises(NetworkError):
            await gate.get_or_compute("total-supply", 60, compute)
        assert len(memory_store) == 0

        assert await gate.get_or_compute("total-supply", 60, compute) == {"v": "ok"}
        assert compute.await_count == 2

    @pytest.mark.asyncio
    async def test_unreachable_store_fails_open(self, clock):
        gate = CacheGate(BrokenStore(), clock=clock)
        compute = AsyncMock(return_value={"v": "fresh"})

        assert await gate.get_or_compute("total-supply", 60, compute) == {"v": "fresh"}
        assert await gate.get_or_compute("total-supply", 60, compute) == {"v": "fresh"}
        assert compute.await_count == 2

    @pytest.mark.asyncio
    async def test_corrupt_entry_is_a_miss(self, clock):
        store = KeepForeverStore()
        store.data["total-supply"] = "not json"
        gate = CacheGate(store, clock=clock)
        compute = AsyncMock(return_value={"v": "fresh"})

        assert await gate.get_or_compute("total-supply", 60, compute) == {"v": "fresh"}
        compute.assert_awaited_once()


class TestForceAndOverride:
    """Test forced recompute and the global TTL override."""

    @pytest.mark.asyncio
    async def test_force_recompute_replaces_live_entry(self, gate):
        compute = AsyncMock(side_effect=[{"v": "old"}, {"v": "new"}])

        await gate.get_or_compute("tvl", 60, compute)
        assert await gate.get_or_compute("tvl", 60, compute, force_recompute=True) == {"v": "new"}
        assert await gate.get_or_compute("tvl", 60, AsyncMock()) == {"v": "new"}

    @pytest.mark.asyncio
    async def test_ttl_override_replaces_metric_ttl(self, clock):
        store = KeepForeverStore()
        gate = CacheGate(store, ttl_override=10, clock=clock)
        compute = AsyncMock(side_effect=[{"v": "1"}, {"v": "2"}])

        await gate.get_or_compute("tvl", 600, compute)
        assert store.ttls["tvl"] == 10

        clock.advance(11)
        assert await gate.get_or_compute("tvl", 600, compute) == {"v": "2"}

    def test_effective_ttl(self, memory_store):
        assert CacheGate(memory_store).effective_ttl(300) == 300
        assert CacheGate(memory_store, ttl_override=5).effective_ttl(300) == 5


class TestSingleFlight:
    """Test coalescing of concurrent misses."""

    @staticmethod
    def slow_compute(release: asyncio.Event, counter: Dict[str, int]):
        async def compute():
            counter["calls"] += 1
            await release.wait()
            return {"v": counter["calls"]}
        return compute

    @pytest.mark.asyncio
    async def test_concurrent_misses_share_one_computation(self, memory_store, clock):
        gate = CacheGate(memory_store, single_flight=True, clock=clock)
        release = asyncio.Event()
        counter = {"calls": 0}
        compute = self.slow_compute(release, counter)

        tasks = [asyncio.ensure_future(gate.get_or_compute("tvl", 60, compute)) for _ in range(5)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*tasks)

        assert counter["calls"] == 1
        assert all(result == {"v": 1} for result in results)

    @pytest.mark.asyncio
    async def test_without_single_flight_each_miss_computes(self, memory_store, clock):
        gate = CacheGate(memory_store, clock=clock)
        release = asyncio.Event()
        counter = {"calls": 0}
        compute = self.slow_compute(release, counter)

        tasks = [asyncio.ensure_future(gate.get_or_compute("tvl", 60, compute)) for _ in range(3)]
        await asyncio.sleep(0)
        release.set()
        await asyncio.gather(*tasks)

        assert counter["calls"] == 3

    @pytest.mark.asyncio
    async def test_inflight_is_cleared_after_failure(self, memory_store, clock):
        gate = CacheGate(memory_store, single_flight=True, clock=clock)
        compute = AsyncMock(side_effect=[NetworkError("down"), {"v": "ok"}])

        with pytest.raises(NetworkError):
            await gate.get_or_compute("tvl", 60, compute)
        await asyncio.sleep(0)

        assert await gate.get_or_compute("tvl", 60, compute) == {"v": "ok"}

    @pytest.mark.asyncio
    async def test_failure_after_every_waiter_cancelled_is_consumed(self, memory_store, clock):
        loop = asyncio.get_running_loop()
        reported = []
        loop.set_exception_handler(lambda _loop, context: reported.append(context))
        try:
            gate = CacheGate(memory_store, single_flight=True, clock=clock)
            release = asyncio.Event()

            async def compute():
                await release.wait()
                raise NetworkError("down")

            waiters = [asyncio.ensure_future(gate.get_or_compute("tvl", 60, compute)) for _ in range(2)]
            for _ in range(10):
                await asyncio.sleep(0)
            assert "tvl" in gate._inflight

            for waiter in waiters:
                waiter.cancel()
            await asyncio.gather(*waiters, return_exceptions=True)
            release.set()
            for _ in range(10):
                await asyncio.sleep(0)

            assert gate._inflight == {}
            gc.collect()
            assert reported == []
        finally:
            loop.set_exception_handler(None)
