"""Liveness and deep health endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse
import structlog

from snx_api.app.dependencies import get_container, verify_health_credentials
from snx_api.schemas.responses import ErrorResponse, StatusResponse
from snx_api.services.container import ServiceContainer

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.get("/status", response_class=PlainTextResponse)
async def get_status():
    """Liveness check. Touches no upstream."""
    logger.info("Checking API status..")
    return "OK"


@router.get(
    "/health",
    response_model=StatusResponse,
    responses={401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_health(
    _: str = Depends(verify_health_credentials),
    container: ServiceContainer = Depends(get_container),
):
    """Run every ledger getter uncached; 500 if any of them fails."""
    return await container.health.check()
