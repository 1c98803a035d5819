"""FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from devmetrics.config import settings
from devmetrics.exceptions import MetricsAPIError
from devmetrics.handlers.exception_handler import (
    generic_exception_handler,
    http_exception_handler,
    metrics_api_exception_handler,
    validation_exception_handler,
)
from devmetrics.logging.config import configure_logging, get_logger
from devmetrics.middleware.logging import LoggingMiddleware
from devmetrics.middleware.request_validation import RequestSizeValidationMiddleware
from devmetrics.repositories.base import BaseRepository
from devmetrics.routes import api_keys, auth, metrics, status, track
from devmetrics.services.ingestion_service import wait_for_background_tasks

# Configure logging before creating the app
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Verify the store on startup and drain pending usage updates on shutdown.

    A table that cannot be described aborts startup.
    """
    for table_name in (settings.dynamodb_table_api_keys, settings.dynamodb_table_requests):
        try:
            await BaseRepository(table_name).describe()
        except Exception:
            logger.critical(
                "Store connection failed at startup",
                extra={"context": {"table": table_name}},
            )
            raise
    logger.info(
        "Store connection verified",
        extra={"context": {"environment": settings.environment}},
    )

    yield

    await wait_for_background_tasks()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    lifespan=lifespan,
    description="""
## DevMetrics API

Collects one event per API call made by monitored services and serves
aggregate analytics to the DevMetrics dashboard.

### Ingestion

`POST /track` with an API key in the body (`apiKey`) or the `X-API-Key`
header. Keys are rate limited per hour and per day; 429 responses carry a
`Retry-After` header.

### Analytics and key management

`/metrics/*` and `/apikey/*` require the `X-Admin-Key` header.

### Self-service

`POST /auth/register` provisions one key per external user;
`GET /auth/api-key/{userId}` returns it.
""",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Register middleware (last added = outermost layer)
app.add_middleware(RequestSizeValidationMiddleware)
app.add_middleware(LoggingMiddleware)

# Register exception handlers
app.add_exception_handler(MetricsAPIError, metrics_api_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Register routers
app.include_router(track.router)
app.include_router(metrics.router)
app.include_router(api_keys.router)
app.include_router(auth.router)
app.include_router(status.router)


@app.get("/", tags=["Root"])
async def root() -> dict:
    """
    Root endpoint with API information.

    Returns:
        Service name, version and the public endpoint map
    """
    return {
        "message": f"Welcome to {settings.api_title}",
        "version": settings.api_version,
        "docs": "/docs",
        "endpoints": {
            "track": "POST /track",
            "metrics": "GET /metrics/{overview,endpoint,recent,errors}",
            "apiKeys": "/apikey",
            "auth": "/auth/register, /auth/api-key/{userId}",
            "status": "GET /status",
            "health": "GET /health",
        },
    }
