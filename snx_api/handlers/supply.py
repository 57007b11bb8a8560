"""SNX supply metrics read from the ledger."""

import asyncio
from typing import Dict

from snx_api.core.aggregator import Term, aggregate
from snx_api.handlers.base import MetricHandler
from snx_api.schemas.responses import CirculatingSupplyResponse, TotalSupplyResponse
from snx_api.sources.specs import LedgerSpec

TOTAL_SUPPLY = LedgerSpec("mainnet", "Synthetix", "totalSupply")
OVM_TOTAL_SUPPLY = LedgerSpec("mainnet-ovm", "Synthetix", "totalSupply")
SYNTHETIX_ESCROW_VESTED = LedgerSpec("mainnet", "SynthetixEscrow", "totalVestedBalance")
OVM_SYNTHETIX_ESCROW_VESTED = LedgerSpec("mainnet-ovm", "SynthetixEscrow", "totalVestedBalance")
REWARD_ESCROW_ESCROWED = LedgerSpec("mainnet", "RewardEscrow", "totalEscrowedBalance")
REWARD_ESCROW_V2_ESCROWED = LedgerSpec("mainnet", "RewardEscrowV2", "totalEscrowedBalance")
OVM_REWARD_ESCROW_V2_ESCROWED = LedgerSpec("mainnet-ovm", "RewardEscrowV2", "totalEscrowedBalance")

# (field, spec, sign) terms of the circulating supply
CIRCULATING_SUPPLY_TERMS = [
    ("totalSupply", TOTAL_SUPPLY, 1),
    ("synthetixEscrowVestedBalance", SYNTHETIX_ESCROW_VESTED, -1),
    ("rewardEscrowEscrowedBalance", REWARD_ESCROW_ESCROWED, -1),
    ("rewardEscrowV2EscrowedBalance", REWARD_ESCROW_V2_ESCROWED, -1),
    ("OVMSynthetixEscrowVestedBalance", OVM_SYNTHETIX_ESCROW_VESTED, -1),
    ("OVMRewardEscrowV2EscrowedBalance", OVM_REWARD_ESCROW_V2_ESCROWED, -1),
]


def chain_label(network: str) -> str:
    return "optimism" if network == "mainnet-ovm" else "ethereum"


class TotalSupplyHandler(MetricHandler):
    """SNX total supply on Ethereum and Optimism."""

    name = "total-supply"
    ttl_seconds = 60
    response_model = TotalSupplyResponse

    async def compute(self, params: Dict[str, str]) -> Dict:
        l1, l2 = await asyncio.gather(
            self.read_ledger(TOTAL_SUPPLY),
            self.read_ledger(OVM_TOTAL_SUPPLY),
        )
        self.logger.info("Total supply fetched", total_supply=str(l1.value), ovm_total_supply=str(l2.value))

        return {
            "totalSupply": l1.value,
            "OVMTotalSupply": l2.value,
            "contracts": {
                "ethereum": {"totalSupply": l1.address},
                "optimism": {"OVMTotalSupply": l2.address},
            },
        }


class CirculatingSupplyHandler(MetricHandler):
    """Total supply minus every escrowed and vesting balance."""

    name = "circulating-supply"
    ttl_seconds = 60
    response_model = CirculatingSupplyResponse

    async def compute(self, params: Dict[str, str]) -> Dict:
        ovm_total, *results = await asyncio.gather(
            self.read_ledger(OVM_TOTAL_SUPPLY),
            *(self.read_ledger(spec) for _, spec, _ in CIRCULATING_SUPPLY_TERMS),
        )

        terms = [
            Term(label=field, value=result.value, sign=sign, source=result.address)
            for (field, _, sign), result in zip(CIRCULATING_SUPPLY_TERMS, results)
        ]

        self.logger.debug("Calculating circulating supply..")
        circulating = aggregate(terms)
        self.logger.info("Circulating supply calculated", circulating_supply=str(circulating.value))

        payload = {"circulatingSupply": circulating.value}
        contracts: Dict[str, Dict[str, str]] = {"ethereum": {}, "optimism": {}}
        for (field, spec, _), result in zip(CIRCULATING_SUPPLY_TERMS, results):
            payload[field] = result.value
            contracts[chain_label(spec.network)][field] = result.address

        payload["OVMTotalSupply"] = ovm_total.value
        contracts["optimism"]["OVMTotalSupply"] = ovm_total.address
        payload["contracts"] = contracts
        return payload
