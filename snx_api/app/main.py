"""Main FastAPI application for the Synthetix metrics API."""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from snx_api.app.routers import health, ledger, stats, v3
from snx_api.config.settings import APISettings
from snx_api.core.exceptions import MetricsAPIError
from snx_api.services.container import ServiceContainer
from snx_api.utils.logging import (
    REQUEST_ID_HEADER,
    bind_request_context,
    clear_request_context,
    request_id_from,
    setup_logging,
)
from snx_api.utils.metrics import metrics, setup_metrics

logger = structlog.get_logger(__name__)

NO_STORE_HEADERS = {
    "Surrogate-Control": "no-store",
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def create_app(settings: Optional[APISettings] = None,
               container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration; read from the environment when omitted
        container: Prebuilt services; built from settings at startup when omitted
    """
    settings = settings or (container.settings if container else APISettings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings)
        logger.info("Starting Synthetix API")

        services = container or ServiceContainer.from_settings(settings)
        try:
            await services.start()
        except Exception as e:
            # an unreachable cache store at boot is fatal
            logger.error("Failed to start API", error=str(e))
            raise
        app.state.container = services

        logger.info("Synthetix API started successfully",
                    host=settings.host,
                    port=settings.port,
                    cache_backend=settings.cache_backend)

        yield

        logger.info("Shutting down Synthetix API")
        await services.stop()
        logger.info("Synthetix API shutdown complete")

    app = FastAPI(
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def no_store_middleware(request: Request, call_next):
        """Stop intermediaries from caching metric responses."""
        response = await call_next(request)
        if not request.url.path.startswith("/docs"):
            response.headers.update(NO_STORE_HEADERS)
        return response

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Request logging middleware."""
        start_time = time.time()
        request_id = request_id_from(request.headers.get(REQUEST_ID_HEADER))
        bind_request_context(request_id=request_id)

        try:
            logger.info("Request started",
                        method=request.method,
                        url=str(request.url),
                        client_ip=request.client.host if request.client else None)

            response = await call_next(request)

            process_time = time.time() - start_time
            logger.info("Request completed",
                        method=request.method,
                        url=str(request.url),
                        status_code=response.status_code,
                        process_time=process_time)
        finally:
            clear_request_context()

        response.headers[REQUEST_ID_HEADER] = request_id

        if settings.enable_metrics:
            metrics.request_count.labels(
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code
            ).inc()
            metrics.request_duration.labels(
                method=request.method,
                endpoint=request.url.path
            ).observe(process_time)

        return response

    if settings.enable_metrics:
        setup_metrics(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(ledger.router, tags=["ledger"])
    app.include_router(v3.router, prefix="/v3", tags=["v3"])
    app.include_router(stats.router, prefix="/stats", tags=["stats"])

    @app.exception_handler(MetricsAPIError)
    async def metrics_api_exception_handler(request: Request, exc: MetricsAPIError):
        """Map the error taxonomy to status codes."""
        log = logger.warning if exc.status_code < 500 else logger.error
        log("Request failed",
            error_type=type(exc).__name__,
            error=exc.message,
            url=str(request.url))
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        logger.warning("HTTP exception",
                       status_code=exc.status_code,
                       detail=exc.detail,
                       url=str(request.url))
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0]["msg"] if errors else "Invalid request"
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions."""
        logger.error("Unhandled exception",
                     error=str(exc),
                     url=str(request.url),
                     exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    return app


def main():
    """Run the API under uvicorn."""
    import uvicorn

    settings = APISettings()

    uvicorn.run(
        "snx_api.app.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        workers=settings.workers if not settings.debug else 1,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
