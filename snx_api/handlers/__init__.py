"""Metric handlers, one class per served metric."""

from snx_api.handlers.accounts import IssuedDebtHandler, RewardsClaimedHandler
from snx_api.handlers.base import ChainMetricHandler, MetricHandler, validate_account_id
from snx_api.handlers.escrow import (
    LiquidatorRewardsHandler,
    RewardEscrowHandler,
    RewardEscrowV2Handler,
    SynthetixBridgeEscrowHandler,
    SynthetixEscrowVestedHandler,
)
from snx_api.handlers.leveraged import LtLeaderboardHandler, LtTradesHandler
from snx_api.handlers.pools import PoolApyAllHandler, PoolApyHandler, PoolApyHistoryHandler
from snx_api.handlers.protocol import TopAssetHandler, Tvl420Handler, TvlHandler
from snx_api.handlers.stats import PerpsVolumeHandler
from snx_api.handlers.supply import CirculatingSupplyHandler, TotalSupplyHandler

HANDLER_CLASSES = [
    TotalSupplyHandler,
    CirculatingSupplyHandler,
    SynthetixEscrowVestedHandler,
    RewardEscrowHandler,
    RewardEscrowV2Handler,
    LiquidatorRewardsHandler,
    SynthetixBridgeEscrowHandler,
    PoolApyHandler,
    PoolApyAllHandler,
    PoolApyHistoryHandler,
    RewardsClaimedHandler,
    IssuedDebtHandler,
    TvlHandler,
    TopAssetHandler,
    Tvl420Handler,
    PerpsVolumeHandler,
    LtTradesHandler,
    LtLeaderboardHandler,
]

__all__ = [
    "MetricHandler",
    "ChainMetricHandler",
    "validate_account_id",
    "HANDLER_CLASSES",
] + [cls.__name__ for cls in HANDLER_CLASSES]
