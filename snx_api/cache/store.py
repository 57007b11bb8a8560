"""Physical cache stores.

Stores hold opaque JSON text under a key with an eviction TTL. Freshness
is decided by the cache gate from the entry envelope, not by the store.
"""

import json
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

import structlog
from redis import asyncio as aioredis
from redis.exceptions import RedisError

from snx_api.core.exceptions import CacheError

logger = structlog.get_logger(__name__)


@dataclass
class CacheEntry:
    """A cached payload and when it was stored."""
    key: str
    value: Any
    stored_at: float
    ttl_seconds: int

    def is_expired(self, now: float) -> bool:
        return self.stored_at + self.ttl_seconds < now

    def to_json(self) -> str:
        return json.dumps({
            "value": self.value,
            "stored_at": self.stored_at,
            "ttl": self.ttl_seconds,
        }, separators=(",", ":"))

    @classmethod
    def from_json(cls, key: str, raw: str) -> "CacheEntry":
        try:
            data = json.loads(raw)
            return cls(key=key, value=data["value"], stored_at=float(data["stored_at"]),
                       ttl_seconds=int(data["ttl"]))
        except (ValueError, TypeError, KeyError) as e:
            raise CacheError(f"Corrupt cache entry for {key}: {e}") from e


class CacheStore(ABC):
    """get/set capability over a key-value store."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored text or None. Raises CacheError if unreachable."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int) -> None:
        """Store text with an eviction TTL. Raises CacheError if unreachable."""

    async def connect(self) -> None:
        """Verify the store is reachable. Raises CacheError if not."""

    async def close(self) -> None:
        """Release connections."""


class MemoryCacheStore(CacheStore):
    """In-process store with lazy eviction."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._data: Dict[str, Tuple[str, float]] = {}

    async def get(self, key: str) -> Optional[str]:
        item = self._data.get(key)
        if item is None:
            return None
        value, evict_at = item
        if evict_at < self._clock():
            del self._data[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl: int) -> None:
        self._data[key] = (value, self._clock() + ttl)

    def __len__(self) -> int:
        return len(self._data)


class RedisCacheStore(CacheStore):
    """Redis-backed store shared across process instances."""

    def __init__(self, redis_url: str, client: Any = None):
        self.redis_url = redis_url
        self._redis = client or aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)
        self.logger = logger.bind(component="redis_cache")

    async def connect(self) -> None:
        try:
            await self._redis.ping()
        except (RedisError, OSError) as e:
            raise CacheError(f"Redis unreachable: {e}") from e
        self.logger.info("Redis client is connected and ready to use")

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._redis.get(key)
        except (RedisError, OSError) as e:
            raise CacheError(f"There was an issue with fetching the cache for {key}: {e}") from e

    async def set(self, key: str, value: str, ttl: int) -> None:
        try:
            await self._redis.set(key, value, ex=ttl)
        except (RedisError, OSError) as e:
            raise CacheError(f"There was an issue with setting the cache for {key}: {e}") from e

    async def close(self) -> None:
        await self._redis.aclose()
        self.logger.info("Redis connection closed")
