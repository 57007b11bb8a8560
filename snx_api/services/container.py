"""Wiring of sources, cache and handlers for one process."""

from typing import Dict, Iterable, Optional

import structlog

from snx_api.cache.gate import CacheGate
from snx_api.cache.store import CacheStore, MemoryCacheStore, RedisCacheStore
from snx_api.config.settings import APISettings
from snx_api.handlers import HANDLER_CLASSES
from snx_api.handlers.base import MetricHandler
from snx_api.services.health import HealthService
from snx_api.services.refresher import BackgroundRefresher
from snx_api.sources.ledger import EndpointRegistry
from snx_api.sources.reader import SourceReader
from snx_api.sources.warehouse import WarehouseRunner

logger = structlog.get_logger(__name__)


class ServiceContainer:
    """Holds every long-lived collaborator, built once at startup."""

    def __init__(self, settings: APISettings, store: CacheStore, reader: SourceReader,
                 warehouse: Optional[WarehouseRunner] = None,
                 handler_classes: Iterable[type] = HANDLER_CLASSES):
        self.settings = settings
        self.store = store
        self.reader = reader
        self.warehouse = warehouse
        self.gate = CacheGate(
            store,
            ttl_override=settings.cache_ttl_override,
            single_flight=settings.cache_single_flight,
        )
        self.handlers: Dict[str, MetricHandler] = {
            cls.name: cls(reader, self.gate) for cls in handler_classes
        }
        self.health = HealthService(reader)
        self.refresher = BackgroundRefresher(
            self.handlers.values(), settings.refresh_interval_seconds
        )

    @classmethod
    def from_settings(cls, settings: APISettings) -> "ServiceContainer":
        """Build the production container from configuration."""

        if settings.cache_backend == "redis":
            if not settings.redis_url:
                raise ValueError("redis_url is required when cache_backend is 'redis'")
            store: CacheStore = RedisCacheStore(settings.redis_url)
        else:
            store = MemoryCacheStore()

        primaries, backups = {}, {}
        for network in ("mainnet", "mainnet-ovm"):
            primary = settings.get_endpoint_config(network)
            if primary is None:
                logger.warning("No ledger endpoint configured", network=network)
                continue
            primaries[network] = primary
            backup = settings.get_endpoint_config(network, backup=True)
            if backup is not None:
                backups[network] = backup

        warehouse = None
        if settings.database_url:
            warehouse = WarehouseRunner.from_url(
                settings.database_url,
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_timeout=settings.db_pool_timeout,
                echo=settings.debug,
            )
        else:
            logger.warning("No warehouse configured, warehouse metrics will fail")

        reader = SourceReader(EndpointRegistry(primaries, backups), warehouse)
        return cls(settings, store, reader, warehouse)

    def handler(self, name: str) -> MetricHandler:
        return self.handlers[name]

    async def start(self):
        """Connect the cache store and start background refresh.

        Raises:
            CacheError: the configured store is unreachable
        """
        await self.store.connect()
        if self.settings.enable_refresher:
            self.refresher.start()

    async def stop(self):
        await self.refresher.stop()
        await self.store.close()
        if self.warehouse is not None:
            self.warehouse.close()
