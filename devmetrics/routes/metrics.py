"""Analytics routes consumed by the dashboard."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from devmetrics.auth.dependencies import require_admin_key
from devmetrics.config import settings
from devmetrics.schemas.metrics import (
    EndpointMetricsResponse,
    ErrorsResponse,
    MetricsFilter,
    OverviewResponse,
    RecentRequestsResponse,
)
from devmetrics.services.aggregation import ERROR_STATUS_THRESHOLD
from devmetrics.services.metrics_service import MetricsService

router = APIRouter(
    prefix="/metrics",
    tags=["Metrics"],
    dependencies=[Depends(require_admin_key)],
    responses={
        401: {"description": "Missing X-Admin-Key header"},
        403: {"description": "Invalid admin credentials"},
    },
)


def metrics_filter(
    start_date: datetime | None = Query(
        None, alias="startDate", description="Inclusive lower bound (ISO 8601)"
    ),
    end_date: datetime | None = Query(
        None, alias="endDate", description="Inclusive upper bound (ISO 8601)"
    ),
    api_key: str | None = Query(None, alias="apiKey", description="Only this key"),
    endpoint: str | None = Query(None, description="Only this endpoint"),
) -> MetricsFilter:
    """
    Build the shared overview / endpoint filter from query parameters.

    Both date bounds are inclusive: an event stamped exactly at ``endDate``
    is counted, the same bound the per-key stats use.
    """
    return MetricsFilter(
        start_date=start_date,
        end_date=end_date,
        api_key=api_key,
        endpoint=endpoint,
    )


@router.get("/overview", response_model=OverviewResponse)
async def get_overview(
    filters: MetricsFilter = Depends(metrics_filter),
) -> OverviewResponse:
    """
    Overall traffic summary.

    Args:
        filters: Date range, API key and endpoint filters

    Returns:
        OverviewResponse with totals, success rate, latency and group counts
    """
    service = MetricsService()
    return OverviewResponse(data=await service.overview(filters))


@router.get("/endpoint", response_model=EndpointMetricsResponse)
async def get_endpoint_metrics(
    filters: MetricsFilter = Depends(metrics_filter),
) -> EndpointMetricsResponse:
    """
    Per-endpoint metrics, busiest endpoint first.

    Args:
        filters: Date range, API key and endpoint filters

    Returns:
        EndpointMetricsResponse with one row per endpoint
    """
    service = MetricsService()
    return EndpointMetricsResponse(data=await service.endpoints(filters))


@router.get("/recent", response_model=RecentRequestsResponse)
async def get_recent_requests(
    page: int = Query(1, ge=1, description="Page number (1-based)"),
    limit: int = Query(
        settings.default_page_limit,
        ge=1,
        le=settings.max_page_limit,
        description="Page size",
    ),
    api_key: str | None = Query(None, alias="apiKey"),
    status: int | None = Query(None, ge=100, le=599, description="Exact status"),
    endpoint: str | None = Query(None),
) -> RecentRequestsResponse:
    """
    Raw request events, newest first.

    Returns:
        RecentRequestsResponse with one page of events and pagination
    """
    service = MetricsService()
    data, pagination = await service.recent(
        page=page, limit=limit, api_key=api_key, status=status, endpoint=endpoint
    )
    return RecentRequestsResponse(data=data, pagination=pagination)


@router.get("/errors", response_model=ErrorsResponse)
async def get_errors(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_limit, ge=1, le=settings.max_page_limit),
    api_key: str | None = Query(None, alias="apiKey"),
    min_status: int = Query(
        ERROR_STATUS_THRESHOLD,
        alias="minStatus",
        ge=100,
        le=599,
        description="Lowest status counted as an error",
    ),
    start_date: datetime | None = Query(
        None, alias="startDate", description="Inclusive lower bound (ISO 8601)"
    ),
    end_date: datetime | None = Query(
        None, alias="endDate", description="Inclusive upper bound (ISO 8601)"
    ),
) -> ErrorsResponse:
    """
    Error events and a per-status summary.

    Returns:
        ErrorsResponse with the error page, summary and pagination
    """
    service = MetricsService()
    report = await service.errors(
        page=page,
        limit=limit,
        api_key=api_key,
        min_status=min_status,
        start_date=start_date,
        end_date=end_date,
    )
    return ErrorsResponse(data=report)
