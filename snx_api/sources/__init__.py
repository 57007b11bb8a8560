"""Upstream sources: ledger RPC endpoints and the analytics warehouse."""

from snx_api.sources.specs import LedgerSpec, LedgerValue, SourceSpec, WarehouseSpec

__all__ = ["LedgerSpec", "LedgerValue", "SourceSpec", "WarehouseSpec"]
