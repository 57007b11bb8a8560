"""Synthetix V3 endpoints backed by the analytics warehouse."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Query

from snx_api.app.dependencies import get_container, serve_metric
from snx_api.schemas.responses import (
    ErrorResponse,
    IssuedDebtResponse,
    LtLeaderboardResponse,
    LtTradesResponse,
    PoolApyListResponse,
    PoolApyResponse,
    TopAssetResponse,
    Tvl420Response,
    TvlResponse,
)
from snx_api.services.container import ServiceContainer

router = APIRouter(responses={
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
})

Chain = Annotated[str, Path(description="Deployment chain (base, arbitrum, mainnet, optimism)")]


@router.get("/tvl", response_model=TvlResponse)
async def get_tvl(container: ServiceContainer = Depends(get_container)):
    """Total value locked across every V3 deployment, in USD."""
    return await serve_metric(container, "v3-tvl")


@router.get("/top-asset", response_model=TopAssetResponse)
async def get_top_asset(container: ServiceContainer = Depends(get_container)):
    """Collateral type with the best 7-day APY on any chain."""
    return await serve_metric(container, "v3-top-asset")


@router.get("/tvl420", response_model=Tvl420Response)
async def get_tvl420(
    network: Optional[str] = Query(default=None, description="cross, ethereum or optimism"),
    span: Optional[str] = Query(default=None, description="hourly, daily, weekly or monthly"),
    container: ServiceContainer = Depends(get_container),
):
    """Cumulative protocol-owned liquidity of the 420 pool."""
    return await serve_metric(container, "tvl420", {"network": network, "span": span})


@router.get("/mainnet/issued-debt", response_model=IssuedDebtResponse)
async def get_issued_debt(
    accountId: Optional[str] = Query(default=None, description="V3 account id"),
    container: ServiceContainer = Depends(get_container),
):
    """sUSD issued by an account against the mainnet pool, per collateral type."""
    return await serve_metric(container, "issued-debt", {"accountId": accountId})


@router.get("/base/lt-leaderboard", response_model=LtLeaderboardResponse)
async def get_lt_leaderboard(container: ServiceContainer = Depends(get_container)):
    """Leveraged token fee and volume rankings per epoch."""
    return await serve_metric(container, "lt-leaderboard")


@router.get("/{chain}/sc-pool-apy", response_model=PoolApyResponse,
            responses={404: {"model": ErrorResponse}})
async def get_sc_pool_apy(chain: Chain,
                          container: ServiceContainer = Depends(get_container)):
    """Latest 7-day APR of the spartan council pool."""
    return await serve_metric(container, "sc-pool-apy", {"chain": chain})


@router.get("/{chain}/sc-pool-apy-all", response_model=PoolApyListResponse,
            responses={404: {"model": ErrorResponse}})
async def get_sc_pool_apy_all(chain: Chain,
                              container: ServiceContainer = Depends(get_container)):
    """Latest APR/APY snapshot for each collateral type."""
    return await serve_metric(container, "sc-pool-apy-all", {"chain": chain})


@router.get("/{chain}/sc-pool-apy-history", response_model=PoolApyListResponse,
            responses={404: {"model": ErrorResponse}})
async def get_sc_pool_apy_history(chain: Chain,
                                  container: ServiceContainer = Depends(get_container)):
    """Daily-sampled APR/APY history of the pool."""
    return await serve_metric(container, "sc-pool-apy-history", {"chain": chain})


@router.get("/{chain}/rewards-claimed", responses={404: {"model": ErrorResponse}})
async def get_rewards_claimed(
    chain: Chain,
    accountId: Optional[str] = Query(default=None, description="V3 account id"),
    container: ServiceContainer = Depends(get_container),
):
    """
    USD value of rewards claimed by an account.

    Base returns a single total; mainnet returns one row per collateral type.
    """
    return await serve_metric(container, "rewards-claimed", {"chain": chain, "accountId": accountId})


@router.get("/{chain}/lt-trades", response_model=LtTradesResponse,
            responses={404: {"model": ErrorResponse}})
async def get_lt_trades(
    chain: Chain,
    account: Optional[str] = Query(default=None, description="Trader address, 0x prefix optional"),
    container: ServiceContainer = Depends(get_container),
):
    """Latest 100 leveraged token trades, optionally for one account."""
    return await serve_metric(container, "lt-trades", {"chain": chain, "account": account})
