"""Supply and escrow endpoints backed by contract reads."""

from fastapi import APIRouter, Depends

from snx_api.app.dependencies import get_container, serve_metric
from snx_api.schemas.responses import (
    CirculatingSupplyResponse,
    ErrorResponse,
    LiquidatorRewardsBalanceResponse,
    RewardEscrowEscrowedBalanceResponse,
    RewardEscrowV2EscrowedBalanceResponse,
    SynthetixBridgeEscrowBalanceResponse,
    SynthetixEscrowVestedBalanceResponse,
    TotalSupplyResponse,
)
from snx_api.services.container import ServiceContainer

router = APIRouter(responses={500: {"model": ErrorResponse}})


@router.get("/total-supply", response_model=TotalSupplyResponse)
async def get_total_supply(container: ServiceContainer = Depends(get_container)):
    """SNX total supply on Ethereum and Optimism."""
    return await serve_metric(container, "total-supply")


@router.get("/circulating-supply", response_model=CirculatingSupplyResponse)
async def get_circulating_supply(container: ServiceContainer = Depends(get_container)):
    """
    SNX circulating supply.

    Total supply minus SynthetixEscrow vested, RewardEscrow escrowed and
    RewardEscrowV2 escrowed balances on both Ethereum and Optimism.
    """
    return await serve_metric(container, "circulating-supply")


@router.get("/synthetixescrow/vested-balance", response_model=SynthetixEscrowVestedBalanceResponse)
async def get_synthetix_escrow_vested_balance(container: ServiceContainer = Depends(get_container)):
    """Vested SNX balance of the SynthetixEscrow contract."""
    return await serve_metric(container, "synthetixEscrow-vestedBalance")


@router.get("/rewardescrow/escrowed-balance", response_model=RewardEscrowEscrowedBalanceResponse)
async def get_reward_escrow_escrowed_balance(container: ServiceContainer = Depends(get_container)):
    return await serve_metric(container, "rewardEscrow-escrowedBalance")


@router.get("/rewardescrowv2/escrowed-balance", response_model=RewardEscrowV2EscrowedBalanceResponse)
async def get_reward_escrow_v2_escrowed_balance(container: ServiceContainer = Depends(get_container)):
    return await serve_metric(container, "rewardEscrowV2-escrowedBalance")


@router.get("/liquidatorrewards/balance", response_model=LiquidatorRewardsBalanceResponse)
async def get_liquidator_rewards_balance(container: ServiceContainer = Depends(get_container)):
    """SNX held by the LiquidatorRewards contract."""
    return await serve_metric(container, "liquidatorRewards-balance")


@router.get("/synthetixbridgeescrow/balance", response_model=SynthetixBridgeEscrowBalanceResponse)
async def get_synthetix_bridge_escrow_balance(container: ServiceContainer = Depends(get_container)):
    """SNX held by the SynthetixBridgeEscrow contract."""
    return await serve_metric(container, "synthetixBridgeEscrow-balance")
