"""Immutable descriptions of a single upstream read."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class LedgerSpec:
    """One read-only contract call.

    Attributes:
        network: Ledger network name ('mainnet', 'mainnet-ovm')
        contract_name: Key in the contract registry ('Synthetix', 'RewardEscrowV2', ...)
        method: Read-only method name ('totalSupply', 'balanceOf', ...)
        args: Positional call arguments. Contract names given here are
            resolved to their address on the same network.
    """
    network: str
    contract_name: str
    method: str
    args: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class WarehouseSpec:
    """One parameterized warehouse query."""
    sql: str
    params: Dict[str, Any] = field(default_factory=dict)

    def __hash__(self) -> int:
        return hash((self.sql, tuple(sorted(self.params.items()))))


@dataclass(frozen=True)
class LedgerValue:
    """Result of a ledger read: the decimal amount and where it came from."""
    value: Decimal
    address: str
    network: str
    endpoint: Optional[str] = None


SourceSpec = Union[LedgerSpec, WarehouseSpec]
