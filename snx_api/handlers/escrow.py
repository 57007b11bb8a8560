"""Escrow and contract-held SNX balances."""

import asyncio
from typing import Dict

from snx_api.handlers.base import MetricHandler
from snx_api.handlers.supply import (
    OVM_REWARD_ESCROW_V2_ESCROWED,
    OVM_SYNTHETIX_ESCROW_VESTED,
    REWARD_ESCROW_ESCROWED,
    REWARD_ESCROW_V2_ESCROWED,
    SYNTHETIX_ESCROW_VESTED,
)
from snx_api.schemas.responses import (
    LiquidatorRewardsBalanceResponse,
    RewardEscrowEscrowedBalanceResponse,
    RewardEscrowV2EscrowedBalanceResponse,
    SynthetixBridgeEscrowBalanceResponse,
    SynthetixEscrowVestedBalanceResponse,
)
from snx_api.sources.ledger import resolve_contract
from snx_api.sources.specs import LedgerSpec


def token_balance_spec(network: str, holder: str) -> LedgerSpec:
    """SNX balance held by a registry contract."""
    return LedgerSpec(network, "ProxyERC20", "balanceOf", (holder,))


LIQUIDATOR_REWARDS_BALANCE = token_balance_spec("mainnet", "LiquidatorRewards")
OVM_LIQUIDATOR_REWARDS_BALANCE = token_balance_spec("mainnet-ovm", "LiquidatorRewards")
SYNTHETIX_BRIDGE_ESCROW_BALANCE = token_balance_spec("mainnet", "SynthetixBridgeEscrow")


class SynthetixEscrowVestedHandler(MetricHandler):
    name = "synthetixEscrow-vestedBalance"
    ttl_seconds = 300
    response_model = SynthetixEscrowVestedBalanceResponse

    async def compute(self, params: Dict[str, str]) -> Dict:
        l1, l2 = await asyncio.gather(
            self.read_ledger(SYNTHETIX_ESCROW_VESTED),
            self.read_ledger(OVM_SYNTHETIX_ESCROW_VESTED),
        )
        return {
            "synthetixEscrowVestedBalance": l1.value,
            "OVMSynthetixEscrowVestedBalance": l2.value,
            "contracts": {
                "ethereum": {"synthetixEscrowVestedBalance": l1.address},
                "optimism": {"OVMSynthetixEscrowVestedBalance": l2.address},
            },
        }


class RewardEscrowHandler(MetricHandler):
    """Legacy RewardEscrow, Ethereum only."""

    name = "rewardEscrow-escrowedBalance"
    ttl_seconds = 60
    response_model = RewardEscrowEscrowedBalanceResponse

    async def compute(self, params: Dict[str, str]) -> Dict:
        l1 = await self.read_ledger(REWARD_ESCROW_ESCROWED)
        return {
            "rewardEscrowEscrowedBalance": l1.value,
            "contracts": {"ethereum": {"rewardEscrowEscrowedBalance": l1.address}},
        }


class RewardEscrowV2Handler(MetricHandler):
    name = "rewardEscrowV2-escrowedBalance"
    ttl_seconds = 60
    response_model = RewardEscrowV2EscrowedBalanceResponse

    async def compute(self, params: Dict[str, str]) -> Dict:
        l1, l2 = await asyncio.gather(
            self.read_ledger(REWARD_ESCROW_V2_ESCROWED),
            self.read_ledger(OVM_REWARD_ESCROW_V2_ESCROWED),
        )
        return {
            "rewardEscrowV2EscrowedBalance": l1.value,
            "OVMRewardEscrowV2EscrowedBalance": l2.value,
            "contracts": {
                "ethereum": {"rewardEscrowV2EscrowedBalance": l1.address},
                "optimism": {"OVMRewardEscrowV2EscrowedBalance": l2.address},
            },
        }


class LiquidatorRewardsHandler(MetricHandler):
    """SNX locked in LiquidatorRewards, read as the token balance of the contract."""

    name = "liquidatorRewards-balance"
    ttl_seconds = 60
    response_model = LiquidatorRewardsBalanceResponse

    async def compute(self, params: Dict[str, str]) -> Dict:
        l1, l2 = await asyncio.gather(
            self.read_ledger(LIQUIDATOR_REWARDS_BALANCE),
            self.read_ledger(OVM_LIQUIDATOR_REWARDS_BALANCE),
        )
        return {
            "liquidatorRewardsBalance": l1.value,
            "OVMLiquidatorRewardsBalance": l2.value,
            "contracts": {
                "ethereum": {
                    "liquidatorRewardsBalance": resolve_contract("mainnet", "LiquidatorRewards"),
                },
                "optimism": {
                    "OVMLiquidatorRewardsBalance": resolve_contract("mainnet-ovm", "LiquidatorRewards"),
                },
            },
        }


class SynthetixBridgeEscrowHandler(MetricHandler):
    name = "synthetixBridgeEscrow-balance"
    ttl_seconds = 60
    response_model = SynthetixBridgeEscrowBalanceResponse

    async def compute(self, params: Dict[str, str]) -> Dict:
        l1 = await self.read_ledger(SYNTHETIX_BRIDGE_ESCROW_BALANCE)
        return {
            "synthetixBridgeEscrowBalance": l1.value,
            "contracts": {
                "ethereum": {
                    "synthetixBridgeEscrowBalance": resolve_contract("mainnet", "SynthetixBridgeEscrow"),
                },
            },
        }
