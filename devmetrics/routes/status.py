"""Health check and status endpoints."""

import time

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from devmetrics.config import settings
from devmetrics.logging.config import get_logger
from devmetrics.repositories.base import BaseRepository

logger = get_logger(__name__)

# Module-level variable to track application start time
_app_start_time = time.time()

router = APIRouter(tags=["Health"])


@router.get("/status")
async def get_status() -> JSONResponse:
    """
    Liveness endpoint for monitoring and load balancers.

    Returns basic API status without authentication and without touching
    the store.

    Returns:
        JSONResponse with status, version, and uptime_seconds
    """
    uptime_seconds = int(time.time() - _app_start_time)

    return JSONResponse(
        status_code=200,
        content={
            "status": "ok",
            "version": settings.api_version,
            "uptime_seconds": uptime_seconds,
        },
    )


@router.get("/health")
async def get_health() -> JSONResponse:
    """
    Readiness endpoint: checks that both tables are reachable.

    Returns:
        200 with ``status: ok`` when the store answers, 503 with
        ``status: degraded`` otherwise
    """
    tables = {}
    healthy = True
    for table_name in (settings.dynamodb_table_api_keys, settings.dynamodb_table_requests):
        try:
            tables[table_name] = await BaseRepository(table_name).describe()
        except (ClientError, BotoCoreError) as exc:
            healthy = False
            tables[table_name] = "unavailable"
            logger.warning(
                "Health check failed",
                exc_info=exc,
                extra={"context": {"table": table_name}},
            )

    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "ok" if healthy else "degraded",
            "environment": settings.environment,
            "tables": tables,
        },
    )
