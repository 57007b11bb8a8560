"""Base class for metric handlers.

A handler owns one metric: it validates request parameters, names the
cache key, and knows how to compute a fresh payload from the sources.
Everything else (cache lookup, TTL, write-back) goes through the gate.
"""

import re
from typing import Any, Dict, List, Mapping, Optional, Type

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from snx_api.cache.gate import CacheGate
from snx_api.cache.keys import build_cache_key
from snx_api.core.exceptions import MetricsAPIError, UnsupportedChain, ValidationError
from snx_api.sources.reader import SourceReader
from snx_api.sources.specs import LedgerSpec, LedgerValue, WarehouseSpec

logger = structlog.get_logger(__name__)

ACCOUNT_ID_PATTERN = re.compile(r"[0-9]+")


def validate_account_id(raw: Optional[str]) -> str:
    """Strip line breaks and require a decimal integer account id."""

    account_id = raw.replace("\r", "").replace("\n", "") if raw else ""
    if not ACCOUNT_ID_PATTERN.fullmatch(account_id):
        raise ValidationError("accountId must be a positive integer")
    return account_id


class MetricHandler:
    """One cacheable metric."""

    name: str = ""
    ttl_seconds: int = 60
    response_model: Type[BaseModel]
    # parameter sets the background refresher keeps warm; empty means not prefetched
    refresh_params: List[Dict[str, str]] = []

    def __init__(self, reader: SourceReader, gate: CacheGate):
        self.reader = reader
        self.gate = gate
        self.logger = logger.bind(metric=self.name)

    def validate(self, params: Mapping[str, Any]) -> Dict[str, str]:
        """Return the normalized parameters. Raises ValidationError."""
        return {}

    async def compute(self, params: Dict[str, str]) -> Any:
        raise NotImplementedError

    def schema_for(self, params: Dict[str, str]) -> Type[BaseModel]:
        return self.response_model

    def cache_key(self, params: Mapping[str, Any]) -> str:
        return build_cache_key(self.name, params)

    async def handle(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Serve the metric, from cache when live."""

        clean = self.validate(params or {})
        key = self.cache_key(clean)
        return await self.gate.get_or_compute(
            key, self.ttl_seconds, lambda: self._compute_payload(clean)
        )

    async def refresh(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Recompute and store the metric regardless of what is cached."""

        clean = self.validate(params or {})
        key = self.cache_key(clean)
        return await self.gate.get_or_compute(
            key, self.ttl_seconds, lambda: self._compute_payload(clean), force_recompute=True
        )

    async def _compute_payload(self, params: Dict[str, str]) -> Any:
        self.logger.debug("Computing metric", params=params)
        payload = await self.compute(params)
        try:
            model = self.schema_for(params).model_validate(payload)
        except SchemaError as e:
            self.logger.error("Computed payload failed validation", error=str(e))
            raise MetricsAPIError(f"{self.name} produced an invalid payload") from e
        return model.model_dump(mode="json")

    async def read_ledger(self, spec: LedgerSpec) -> LedgerValue:
        return await self.reader.fetch_with_failover(spec)

    async def query(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return await self.reader.fetch(WarehouseSpec(sql=sql, params=params or {}))


class ChainMetricHandler(MetricHandler):
    """A metric served once per supported chain."""

    chains: Dict[str, str] = {}

    def validate(self, params: Mapping[str, Any]) -> Dict[str, str]:
        chain = params.get("chain")
        if chain not in self.chains:
            raise UnsupportedChain(f"{self.name} is not available for chain {chain}")
        return {"chain": chain}
