"""FastAPI dependencies."""

import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from snx_api.services.container import ServiceContainer

health_security = HTTPBasic(auto_error=False)


def get_container(request: Request) -> ServiceContainer:
    """Get the service container built at startup."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not ready"
        )
    return container


def verify_health_credentials(
    credentials: HTTPBasicCredentials = Depends(health_security),
    container: ServiceContainer = Depends(get_container),
) -> str:
    """Basic auth gate in front of the deep health check.

    Without a configured password nobody gets through.
    """
    settings = container.settings
    expected_password = settings.health_endpoint_password

    authorized = (
        credentials is not None
        and expected_password is not None
        and secrets.compare_digest(credentials.username.encode(), settings.health_endpoint_user.encode())
        and secrets.compare_digest(credentials.password.encode(), expected_password.encode())
    )
    if not authorized:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username


async def serve_metric(container: ServiceContainer, metric: str, params: Optional[dict] = None) -> JSONResponse:
    """Serve a metric payload exactly as cached."""
    payload = await container.handler(metric).handle(params)
    return JSONResponse(content=payload)
