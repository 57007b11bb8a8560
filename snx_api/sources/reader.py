"""Uniform fetch over ledger and warehouse sources."""

from typing import Any, Dict, List, Optional, Union

import structlog

from snx_api.core.aggregator import normalize
from snx_api.core.exceptions import NotFoundError, SourceError
from snx_api.core.failover import with_failover
from snx_api.sources.ledger import (
    CONTRACTS, TOKEN_DECIMALS, EndpointRegistry, from_fixed_point, resolve_contract,
)
from snx_api.sources.specs import LedgerSpec, LedgerValue, SourceSpec, WarehouseSpec
from snx_api.sources.warehouse import WarehouseRunner
from snx_api.utils.metrics import metrics

logger = structlog.get_logger(__name__)


class SourceReader:
    """Reads one SourceSpec from the matching upstream. Never caches."""

    def __init__(self, endpoints: Optional[EndpointRegistry] = None,
                 warehouse: Optional[WarehouseRunner] = None):
        self.endpoints = endpoints
        self.warehouse = warehouse
        self.logger = logger.bind(component="source_reader")

    async def fetch(self, spec: SourceSpec, endpoint: Any = None) -> Union[LedgerValue, List[Dict[str, Any]]]:
        """
        Fetch a single value.

        Args:
            spec: LedgerSpec or WarehouseSpec
            endpoint: Ledger endpoint to use; defaults to the network's primary

        Returns:
            LedgerValue for ledger specs, row dictionaries for warehouse specs

        Raises:
            NetworkError, QueryError, NotFoundError
        """
        try:
            if isinstance(spec, LedgerSpec):
                return await self._fetch_ledger(spec, endpoint)
            if isinstance(spec, WarehouseSpec):
                return await self._fetch_warehouse(spec)
        except SourceError as e:
            metrics.source_errors.labels(kind=e.kind).inc()
            raise

        raise TypeError(f"Unsupported source spec: {type(spec).__name__}")

    async def fetch_with_failover(self, spec: LedgerSpec) -> LedgerValue:
        """Fetch a ledger value, switching to the backup endpoint once on network errors."""

        if self.endpoints is None:
            raise NotFoundError("No ledger endpoints configured")

        return await with_failover(
            self.endpoints.primary(spec.network),
            self.endpoints.backup_factory(spec.network),
            lambda endpoint: self.fetch(spec, endpoint),
        )

    async def _fetch_ledger(self, spec: LedgerSpec, endpoint: Any) -> LedgerValue:
        if endpoint is None:
            if self.endpoints is None:
                raise NotFoundError("No ledger endpoints configured")
            endpoint = self.endpoints.primary(spec.network)

        address = resolve_contract(spec.network, spec.contract_name)
        args = tuple(
            resolve_contract(spec.network, a) if isinstance(a, str) and a in CONTRACTS.get(spec.network, {}) else a
            for a in spec.args
        )

        self.logger.debug("Reading contract value",
                          network=spec.network,
                          contract=spec.contract_name,
                          method=spec.method)

        raw = await endpoint.call(address, spec.method, args)
        value = normalize(from_fixed_point(raw, TOKEN_DECIMALS))

        self.logger.info("Contract value read",
                         network=spec.network,
                         contract=spec.contract_name,
                         method=spec.method,
                         value=str(value))

        return LedgerValue(
            value=value,
            address=address,
            network=spec.network,
            endpoint=getattr(endpoint, "label", None),
        )

    async def _fetch_warehouse(self, spec: WarehouseSpec) -> List[Dict[str, Any]]:
        if self.warehouse is None:
            raise NotFoundError("No warehouse configured")
        return await self.warehouse.run_query(spec.sql, spec.params)
