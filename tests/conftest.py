"""Pytest configuration and fixtures for the Synthetix API tests."""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from snx_api.cache.gate import CacheGate
from snx_api.cache.store import MemoryCacheStore
from snx_api.config.settings import APISettings
from snx_api.core.exceptions import NetworkError
from snx_api.services.container import ServiceContainer
from snx_api.sources.ledger import CONTRACTS, EndpointConfig, EndpointRegistry
from snx_api.sources.reader import SourceReader


def wei(amount: str) -> int:
    """Token amount to its raw 18-decimal integer."""
    return int(Decimal(amount).scaleb(18))


# ============================================================================
# CLOCK
# ============================================================================

class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return ManualClock()


# ============================================================================
# LEDGER FIXTURES
# ============================================================================

SAMPLE_BALANCES = {
    ("mainnet", "Synthetix", "totalSupply"): "309509422.088773603337882496",
    ("mainnet-ovm", "Synthetix", "totalSupply"): "89132014.499559654122877079",
    ("mainnet", "SynthetixEscrow", "totalVestedBalance"): "723907.949250420000000002",
    ("mainnet-ovm", "SynthetixEscrow", "totalVestedBalance"): "0",
    ("mainnet", "RewardEscrow", "totalEscrowedBalance"): "73763701.242877032135481494",
    ("mainnet", "RewardEscrowV2", "totalEscrowedBalance"): "58795426.272404595327975783",
    ("mainnet-ovm", "RewardEscrowV2", "totalEscrowedBalance"): "34299695.279932558082573391",
}

SAMPLE_HOLDINGS = {
    ("mainnet", "LiquidatorRewards"): "1250000.5",
    ("mainnet-ovm", "LiquidatorRewards"): "830000.25",
    ("mainnet", "SynthetixBridgeEscrow"): "71283923.1",
}


class FakeLedger:
    """In-memory stand-in for every RPC endpoint of every network.

    Endpoints are created through `factory`, the same seam the registry
    uses for real web3 endpoints. Failures are configured per label.
    """

    def __init__(self):
        self.results: Dict[Tuple[str, str, Tuple[str, ...]], int] = {}
        self.failures: Dict[str, Exception] = {}
        self.created: List["FakeEndpoint"] = []

        for (network, contract, method), amount in SAMPLE_BALANCES.items():
            self.set_result(network, contract, method, amount)
        for (network, holder), amount in SAMPLE_HOLDINGS.items():
            self.set_result(network, "ProxyERC20", "balanceOf", amount,
                            args=(CONTRACTS[network][holder],))

    def set_result(self, network: str, contract: str, method: str, amount: str,
                   args: Sequence[str] = ()):
        address = CONTRACTS[network][contract]
        key = (address.lower(), method, tuple(a.lower() for a in args))
        self.results[key] = wei(amount)

    def fail(self, label: str, error: Optional[Exception] = None):
        self.failures[label] = error or NetworkError(f"{label} endpoint unreachable")

    @property
    def calls(self) -> int:
        return sum(endpoint.calls for endpoint in self.created)

    def calls_for(self, label: str) -> int:
        return sum(e.calls for e in self.created if e.label == label)

    def factory(self, config: EndpointConfig, label: str) -> "FakeEndpoint":
        endpoint = FakeEndpoint(self, config, label)
        self.created.append(endpoint)
        return endpoint


class FakeEndpoint:
    def __init__(self, ledger: FakeLedger, config: EndpointConfig, label: str):
        self.ledger = ledger
        self.config = config
        self.network = config.network
        self.label = label
        self.calls = 0

    def __repr__(self) -> str:
        return f"FakeEndpoint({self.network}, {self.label})"

    async def call(self, address: str, method: str, args: Sequence[Any] = ()) -> int:
        self.calls += 1
        if self.label in self.ledger.failures:
            raise self.ledger.failures[self.label]
        key = (address.lower(), method, tuple(str(a).lower() for a in args))
        return self.ledger.results[key]


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def endpoint_configs():
    return {
        "mainnet": EndpointConfig(network="mainnet", url="http://l1.test"),
        "mainnet-ovm": EndpointConfig(network="mainnet-ovm", url="http://l2.test"),
    }


@pytest.fixture
def registry(ledger, endpoint_configs):
    backups = {
        "mainnet": EndpointConfig(network="mainnet", url="http://l1-backup.test"),
        "mainnet-ovm": EndpointConfig(network="mainnet-ovm", url="http://l2-backup.test"),
    }
    return EndpointRegistry(endpoint_configs, backups, endpoint_factory=ledger.factory)


# ============================================================================
# WAREHOUSE FIXTURES
# ============================================================================

class FakeWarehouse:
    """Answers queries by matching a fragment of the SQL text."""

    def __init__(self):
        self.responses: List[Tuple[str, Any]] = []
        self.queries: List[Tuple[str, Dict[str, Any]]] = []

    def respond(self, fragment: str, rows: Any):
        """Register rows (or an exception to raise) for queries containing fragment."""
        self.responses.append((fragment, rows))

    async def run_query(self, sql: str, params: Optional[Dict[str, Any]] = None):
        self.queries.append((sql, params or {}))
        for fragment, rows in self.responses:
            if fragment in sql:
                if isinstance(rows, Exception):
                    raise rows
                return rows
        return []


@pytest.fixture
def warehouse():
    return FakeWarehouse()


# ============================================================================
# SERVICE FIXTURES
# ============================================================================

@pytest.fixture
def memory_store(clock):
    return MemoryCacheStore(clock=clock)


@pytest.fixture
def gate(memory_store, clock):
    return CacheGate(memory_store, clock=clock)


@pytest.fixture
def reader(registry, warehouse):
    return SourceReader(registry, warehouse)


@pytest.fixture
def test_settings():
    return APISettings(
        _env_file=None,
        mainnet_provider_url="http://l1.test",
        ovm_provider_url="http://l2.test",
        enable_refresher=False,
        enable_metrics=True,
        health_endpoint_password="s3cret",
        log_format="text",
    )


@pytest.fixture
def container(test_settings, memory_store, reader, clock):
    services = ServiceContainer(test_settings, memory_store, reader)
    services.gate._clock = clock
    return services
