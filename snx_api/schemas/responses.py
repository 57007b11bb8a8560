"""Response schemas for the Synthetix metrics API.

Field names are the wire names. Decimal fields serialize as JSON strings
so 18-decimal amounts survive the trip intact.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, RootModel

# fixed-point notation, never exponent form
Amount = Annotated[Decimal, PlainSerializer(lambda v: format(v, "f"), return_type=str, when_used="json")]

ContractsMap = Dict[str, Dict[str, str]]


class ErrorResponse(BaseModel):
    """Body of every failed request."""
    error: str = Field(..., description="Error message")


class StatusResponse(BaseModel):
    status: str = Field(..., description="Health status")


# ============================================================================
# LEDGER METRICS
# ============================================================================

class TotalSupplyResponse(BaseModel):
    """SNX total supply on L1 and L2."""
    totalSupply: Amount
    OVMTotalSupply: Amount
    contracts: ContractsMap

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "totalSupply": "309509422.088773603337882496",
            "OVMTotalSupply": "89132014.499559654122877079",
            "contracts": {
                "ethereum": {"totalSupply": "0xC011a73ee8576Fb46F5E1c5751cA3B9Fe0af2a6F"},
                "optimism": {"OVMTotalSupply": "0x8700dAec35aF8Ff88c16BdF0418774CB3D7599B4"},
            },
        }
    })


class CirculatingSupplyResponse(BaseModel):
    """SNX circulating supply across L1 and L2."""
    circulatingSupply: Amount
    totalSupply: Amount
    synthetixEscrowVestedBalance: Amount
    rewardEscrowEscrowedBalance: Amount
    rewardEscrowV2EscrowedBalance: Amount
    OVMTotalSupply: Amount
    OVMSynthetixEscrowVestedBalance: Amount
    OVMRewardEscrowV2EscrowedBalance: Amount
    contracts: ContractsMap

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "circulatingSupply": "141926691.344308997791851826",
            "totalSupply": "309509422.088773603337882496",
            "synthetixEscrowVestedBalance": "723907.949250420000000002",
            "rewardEscrowEscrowedBalance": "73763701.242877032135481494",
            "rewardEscrowV2EscrowedBalance": "58795426.272404595327975783",
            "OVMTotalSupply": "89132014.499559654122877079",
            "OVMSynthetixEscrowVestedBalance": "0",
            "OVMRewardEscrowV2EscrowedBalance": "34299695.279932558082573391",
        }
    })


class SynthetixEscrowVestedBalanceResponse(BaseModel):
    synthetixEscrowVestedBalance: Amount
    OVMSynthetixEscrowVestedBalance: Amount
    contracts: ContractsMap


class RewardEscrowEscrowedBalanceResponse(BaseModel):
    rewardEscrowEscrowedBalance: Amount
    contracts: ContractsMap


class RewardEscrowV2EscrowedBalanceResponse(BaseModel):
    rewardEscrowV2EscrowedBalance: Amount
    OVMRewardEscrowV2EscrowedBalance: Amount
    contracts: ContractsMap


class LiquidatorRewardsBalanceResponse(BaseModel):
    liquidatorRewardsBalance: Amount
    OVMLiquidatorRewardsBalance: Amount
    contracts: ContractsMap


class SynthetixBridgeEscrowBalanceResponse(BaseModel):
    synthetixBridgeEscrowBalance: Amount
    contracts: ContractsMap


# ============================================================================
# WAREHOUSE METRICS
# ============================================================================

class PoolApyResponse(BaseModel):
    """Latest 7-day APR split for the spartan council pool."""
    aprPnl: Optional[Amount] = None
    aprRewards: Optional[Amount] = None
    aprCombined: Optional[Amount] = None


class PoolApyRecord(BaseModel):
    """One hourly pool snapshot for a collateral type."""
    timestamp: datetime
    poolId: int
    collateralType: str
    collateralValue: Optional[Amount] = None
    debtAmount: Optional[Amount] = None
    hourlyIssuance: Optional[Amount] = None
    hourlyPnl: Optional[Amount] = None
    cumulativePnl: Optional[Amount] = None
    cumulativeIssuance: Optional[Amount] = None
    rewardsUSD: Optional[Amount] = None
    hourlyPnlPct: Optional[Amount] = None
    hourlyRewardsPct: Optional[Amount] = None
    apr24h: Optional[Amount] = None
    apy24h: Optional[Amount] = None
    apr7d: Optional[Amount] = None
    apy7d: Optional[Amount] = None
    apr28d: Optional[Amount] = None
    apy28d: Optional[Amount] = None
    apr24hPnl: Optional[Amount] = None
    apy24hPnl: Optional[Amount] = None
    apr7dPnl: Optional[Amount] = None
    apy7dPnl: Optional[Amount] = None
    apr28dPnl: Optional[Amount] = None
    apy28dPnl: Optional[Amount] = None
    apr24hRewards: Optional[Amount] = None
    apy24hRewards: Optional[Amount] = None
    apr7dRewards: Optional[Amount] = None
    apy7dRewards: Optional[Amount] = None
    apr28dRewards: Optional[Amount] = None
    apy28dRewards: Optional[Amount] = None
    apr24hIncentiveRewards: Optional[Amount] = None
    apy24hIncentiveRewards: Optional[Amount] = None
    apr7dIncentiveRewards: Optional[Amount] = None
    apy7dIncentiveRewards: Optional[Amount] = None
    apr28dIncentiveRewards: Optional[Amount] = None
    apy28dIncentiveRewards: Optional[Amount] = None
    apr24hPerformance: Optional[Amount] = None
    apy24hPerformance: Optional[Amount] = None
    apr7dPerformance: Optional[Amount] = None
    apy7dPerformance: Optional[Amount] = None
    apr28dPerformance: Optional[Amount] = None
    apy28dPerformance: Optional[Amount] = None
    # kept for backward compatibility with the first APY endpoint
    aprPnl: Optional[Amount] = None
    aprRewards: Optional[Amount] = None
    aprCombined: Optional[Amount] = None


class PoolApyListResponse(RootModel[List[PoolApyRecord]]):
    pass


class RewardsClaimedResponse(RootModel[Optional[Amount]]):
    """Total USD value of rewards claimed by one account."""


class CollateralRewardsRow(BaseModel):
    collateral_type: str
    total_amount_usd: Optional[Amount] = None


class CollateralRewardsClaimedResponse(RootModel[List[CollateralRewardsRow]]):
    """Rewards claimed by one account, per collateral type."""


class IssuedDebtRow(BaseModel):
    collateral_type: str
    issuance: Optional[Amount] = None


class IssuedDebtResponse(RootModel[List[IssuedDebtRow]]):
    pass


class TvlResponse(BaseModel):
    timestamp: datetime
    tvl: Optional[Amount] = None


class TopAssetResponse(BaseModel):
    timestamp: datetime
    chain: Optional[str] = None
    token_symbol: Optional[str] = None
    apr: Optional[Amount] = None
    apy: Optional[Amount] = None


class Tvl420Point(BaseModel):
    ts: datetime
    value: Optional[Amount] = None


class Tvl420Response(RootModel[List[Tvl420Point]]):
    pass


class PerpsVolumeResponse(BaseModel):
    timestamp: datetime
    volume_24h: Amount
    volume_7d: Amount


# ============================================================================
# LEVERAGED TOKENS
# ============================================================================

class LtTradeRow(BaseModel):
    """One leveraged token mint or redeem."""
    block_number: int
    ts: datetime
    transaction_hash: str
    event_name: Optional[str] = None
    account: Optional[str] = None
    market: Optional[str] = None
    token: Optional[str] = None
    leverage: Optional[Amount] = None
    leveraged_token_amount: Optional[Amount] = None
    base_asset_amount: Optional[Amount] = None


class LtTradesResponse(RootModel[List[LtTradeRow]]):
    """Latest trades, newest block first."""


class LtLeaderboardRow(BaseModel):
    epoch_start: datetime
    account: str
    total_fees_paid: Optional[Amount] = None
    fees_paid_pct: Optional[Amount] = None
    fees_rank: Optional[int] = None
    volume: Optional[Amount] = None
    volume_rank: Optional[int] = None
    volume_pct: Optional[Amount] = None


class LtLeaderboardResponse(RootModel[List[LtLeaderboardRow]]):
    pass
