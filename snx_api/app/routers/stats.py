"""Trading statistics endpoints."""

from fastapi import APIRouter, Depends

from snx_api.app.dependencies import get_container, serve_metric
from snx_api.schemas.responses import ErrorResponse, PerpsVolumeResponse
from snx_api.services.container import ServiceContainer

router = APIRouter(responses={500: {"model": ErrorResponse}})


@router.get("/perps-volume", response_model=PerpsVolumeResponse)
async def get_perps_volume(container: ServiceContainer = Depends(get_container)):
    """Perps volume over the last 24 hours and 7 days, in USD."""
    return await serve_metric(container, "perps-volume")
