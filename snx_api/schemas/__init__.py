"""Pydantic schemas for the Synthetix metrics API."""

from snx_api.schemas.responses import (
    ErrorResponse,
    StatusResponse,
    TotalSupplyResponse,
    CirculatingSupplyResponse,
    SynthetixEscrowVestedBalanceResponse,
    RewardEscrowEscrowedBalanceResponse,
    RewardEscrowV2EscrowedBalanceResponse,
    LiquidatorRewardsBalanceResponse,
    SynthetixBridgeEscrowBalanceResponse,
    PoolApyResponse,
    PoolApyRecord,
    PoolApyListResponse,
    RewardsClaimedResponse,
    CollateralRewardsClaimedResponse,
    IssuedDebtResponse,
    TvlResponse,
    TopAssetResponse,
    Tvl420Response,
    PerpsVolumeResponse,
    LtTradesResponse,
    LtLeaderboardResponse,
)

__all__ = [
    "ErrorResponse",
    "StatusResponse",
    "TotalSupplyResponse",
    "CirculatingSupplyResponse",
    "SynthetixEscrowVestedBalanceResponse",
    "RewardEscrowEscrowedBalanceResponse",
    "RewardEscrowV2EscrowedBalanceResponse",
    "LiquidatorRewardsBalanceResponse",
    "SynthetixBridgeEscrowBalanceResponse",
    "PoolApyResponse",
    "PoolApyRecord",
    "PoolApyListResponse",
    "RewardsClaimedResponse",
    "CollateralRewardsClaimedResponse",
    "IssuedDebtResponse",
    "TvlResponse",
    "TopAssetResponse",
    "Tvl420Response",
    "PerpsVolumeResponse",
    "LtTradesResponse",
    "LtLeaderboardResponse",
]
