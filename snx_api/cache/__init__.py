"""Read-through cache: key derivation, stores and the cache gate."""

from snx_api.cache.gate import CacheGate
from snx_api.cache.keys import build_cache_key
from snx_api.cache.store import CacheEntry, CacheStore, MemoryCacheStore, RedisCacheStore

__all__ = [
    "CacheGate",
    "build_cache_key",
    "CacheEntry",
    "CacheStore",
    "MemoryCacheStore",
    "RedisCacheStore",
]
