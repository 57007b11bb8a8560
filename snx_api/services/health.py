"""Deep health check over the ledger getters."""

from typing import Dict, List, Tuple

import structlog

from snx_api.handlers.supply import (
    OVM_REWARD_ESCROW_V2_ESCROWED,
    OVM_SYNTHETIX_ESCROW_VESTED,
    OVM_TOTAL_SUPPLY,
    REWARD_ESCROW_ESCROWED,
    REWARD_ESCROW_V2_ESCROWED,
    SYNTHETIX_ESCROW_VESTED,
    TOTAL_SUPPLY,
)
from snx_api.sources.reader import SourceReader
from snx_api.sources.specs import LedgerSpec

logger = structlog.get_logger(__name__)

HEALTH_CHECKS: List[Tuple[str, LedgerSpec]] = [
    ("getTotalSupply", TOTAL_SUPPLY),
    ("getOVMTotalSupply", OVM_TOTAL_SUPPLY),
    ("getSynthetixEscrowVestedBalance", SYNTHETIX_ESCROW_VESTED),
    ("getOVMSynthetixEscrowVestedBalance", OVM_SYNTHETIX_ESCROW_VESTED),
    ("getRewardEscrowV2EscrowedBalance", REWARD_ESCROW_V2_ESCROWED),
    ("getOVMRewardEscrowV2EscrowedBalance", OVM_REWARD_ESCROW_V2_ESCROWED),
    ("getRewardEscrowEscrowedBalance", REWARD_ESCROW_ESCROWED),
]


class HealthService:
    """Runs every ledger read uncached; any failure propagates."""

    def __init__(self, reader: SourceReader):
        self.reader = reader
        self.logger = logger.bind(component="health")

    async def check(self) -> Dict[str, str]:
        self.logger.info("Checking API health..")
        for name, spec in HEALTH_CHECKS:
            self.logger.info("Checking getter", getter=name)
            await self.reader.fetch_with_failover(spec)
        self.logger.info("HEALTHY!")
        return {"status": "OK"}
