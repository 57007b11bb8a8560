"""Ledger access: RPC endpoints and the Synthetix contract registry.

Each network has a primary endpoint that is created once and reused, and
a backup endpoint that is created on demand when the failover policy asks
for it.
"""

import asyncio
from dataclasses import dataclass
from decimal import Context, Decimal, localcontext
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.parse import quote, urlsplit, urlunsplit

import aiohttp
import structlog
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from snx_api.core.aggregator import PRECISION
from snx_api.core.exceptions import NetworkError, NotFoundError, SourceError

logger = structlog.get_logger(__name__)

TOKEN_DECIMALS = 18

CONTRACTS: Dict[str, Dict[str, str]] = {
    "mainnet": {
        "Synthetix": "0xC011a73ee8576Fb46F5E1c5751cA3B9Fe0af2a6F",
        "ProxyERC20": "0xC011a73ee8576Fb46F5E1c5751cA3B9Fe0af2a6F",
        "SynthetixEscrow": "0x971e78e0C92392A4E39099835cF7E6aB535b2227",
        "RewardEscrow": "0xb671F2210B1F6621A2607EA63E6B2DC3e2464d1F",
        "RewardEscrowV2": "0xAc86855865CbF31c8f9FBB68C749AD5Bd72802e3",
        "LiquidatorRewards": "0xf79603a71144e415730C1A6f57F366E4Ea962C00",
        "SynthetixBridgeEscrow": "0x5Fd79D46EBA7F351fe49BFF9E87cdeA6c821eF9f",
    },
    "mainnet-ovm": {
        "Synthetix": "0x8700dAec35aF8Ff88c16BdF0418774CB3D7599B4",
        "ProxyERC20": "0x8700dAec35aF8Ff88c16BdF0418774CB3D7599B4",
        "SynthetixEscrow": "0x06C6D063896ac733673c4474E44d9268f2402A55",
        "RewardEscrowV2": "0x6330D5F08f51057F36F46d6751eCDc0c65Ef7E9e",
        "LiquidatorRewards": "0xF4EebDD0704021eF2a6Bbe993fdf93030Cd784b4",
    },
}


def _uint_view(name: str, inputs: Sequence[str] = ()) -> Dict[str, Any]:
    return {
        "constant": True,
        "inputs": [{"name": f"arg{i}", "type": t} for i, t in enumerate(inputs)],
        "name": name,
        "outputs": [{"name": "", "type": "uint256"}],
        "payable": False,
        "stateMutability": "view",
        "type": "function",
    }


READ_ABI: List[Dict[str, Any]] = [
    _uint_view("totalSupply"),
    _uint_view("totalEscrowedBalance"),
    _uint_view("totalVestedBalance"),
    _uint_view("balanceOf", ["address"]),
]

READ_METHODS = frozenset(entry["name"] for entry in READ_ABI)


def resolve_contract(network: str, contract_name: str) -> str:
    """Look up a contract address, raising NotFoundError if unknown."""

    try:
        return CONTRACTS[network][contract_name]
    except KeyError:
        raise NotFoundError(
            f"Unknown contract {contract_name} on network {network}",
            details={"network": network, "contract": contract_name},
        )


def from_fixed_point(raw: int, decimals: int = TOKEN_DECIMALS) -> Decimal:
    """Convert a raw uint amount into a token-denominated Decimal."""
    with localcontext(Context(prec=PRECISION)):
        return Decimal(int(raw)).scaleb(-decimals)


@dataclass(frozen=True)
class EndpointConfig:
    """Connection details for one RPC endpoint."""
    network: str
    url: str
    user: Optional[str] = None
    password: Optional[str] = None
    timeout: float = 10.0

    def authenticated_url(self) -> str:
        if not self.user:
            return self.url
        parts = urlsplit(self.url)
        credentials = quote(self.user, safe="")
        if self.password:
            credentials += ":" + quote(self.password, safe="")
        return urlunsplit(parts._replace(netloc=f"{credentials}@{parts.netloc}"))

    @property
    def host(self) -> str:
        return urlsplit(self.url).netloc


class LedgerEndpoint:
    """A live handle to one RPC endpoint."""

    def __init__(self, config: EndpointConfig, label: str = "primary"):
        self.config = config
        self.label = label
        self.network = config.network
        self._w3 = AsyncWeb3(AsyncHTTPProvider(
            config.authenticated_url(),
            request_kwargs={"timeout": aiohttp.ClientTimeout(total=config.timeout)},
            exception_retry_configuration=None,
        ))

    def __repr__(self) -> str:
        return f"LedgerEndpoint({self.network}, {self.label}, {self.config.host})"

    async def call(self, address: str, method: str, args: Sequence[Any] = ()) -> int:
        """Invoke a read-only contract method and return the raw result.

        Raises:
            NetworkError: transport failure (connection, timeout, HTTP error)
            SourceError: the call reverted or returned undecodable output
        """
        if method not in READ_METHODS:
            raise NotFoundError(f"Unsupported contract method {method}")

        contract = self._w3.eth.contract(address=Web3.to_checksum_address(address), abi=READ_ABI)
        call_args = [Web3.to_checksum_address(a) if isinstance(a, str) else a for a in args]

        try:
            return await getattr(contract.functions, method)(*call_args).call()
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise NetworkError(
                f"{self.network} endpoint {self.config.host} failed: {e}",
                details={"network": self.network, "endpoint": self.label},
            ) from e
        except (ContractLogicError, BadFunctionCallOutput) as e:
            raise SourceError(f"{method} on {address} failed: {e}") from e


EndpointFactory = Callable[[EndpointConfig, str], Any]


class EndpointRegistry:
    """Resolves network names to primary endpoints and backup factories."""

    def __init__(self, primary_configs: Dict[str, EndpointConfig],
                 backup_configs: Optional[Dict[str, EndpointConfig]] = None,
                 endpoint_factory: EndpointFactory = LedgerEndpoint):
        self._primary_configs = primary_configs
        self._backup_configs = backup_configs or {}
        self._endpoint_factory = endpoint_factory
        self._primaries: Dict[str, Any] = {}
        self.logger = logger.bind(component="endpoint_registry")

    @property
    def networks(self) -> List[str]:
        return list(self._primary_configs)

    def primary(self, network: str):
        """Get the shared primary endpoint for a network."""

        if network not in self._primary_configs:
            raise NotFoundError(f"No ledger endpoint configured for network {network}")

        if network not in self._primaries:
            self._primaries[network] = self._endpoint_factory(self._primary_configs[network], "primary")
            self.logger.info("Primary endpoint initialized", network=network)

        return self._primaries[network]

    def backup_factory(self, network: str) -> Callable[[], Any]:
        """Get a zero-argument callable that builds a fresh backup endpoint.

        Networks without a configured backup retry against a new handle
        to the primary URL.
        """
        def build():
            config = self._backup_configs.get(network)
            if config is None:
                if network not in self._primary_configs:
                    raise NotFoundError(f"No ledger endpoint configured for network {network}")
                self.logger.warning("No backup endpoint configured, reusing primary URL", network=network)
                config = self._primary_configs[network]
            return self._endpoint_factory(config, "backup")

        return build
