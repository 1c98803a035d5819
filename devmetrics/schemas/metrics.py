"""Pydantic schemas for analytics responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from devmetrics.models.request_event import RequestEvent
from devmetrics.schemas.common import CamelModel, GroupCount, PaginationMetadata


class MetricsFilter(BaseModel):
    """
    Predicates applied to request events before grouping.

    ``start_date`` and ``end_date`` are both inclusive.
    """

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    api_key: Optional[str] = None
    endpoint: Optional[str] = None
    status: Optional[int] = None
    min_status: Optional[int] = None


class Overview(CamelModel):
    """Overview aggregate over the filtered events."""

    total_requests: int
    success_rate: float
    avg_response_time: float
    min_response_time: float
    max_response_time: float
    requests_by_status: list[GroupCount]
    requests_by_method: list[GroupCount]
    requests_over_time: list[GroupCount]


class OverviewResponse(CamelModel):
    """Overview response body."""

    success: bool = True
    data: Overview


class EndpointMetrics(CamelModel):
    """Aggregate of one endpoint."""

    endpoint: str
    total_requests: int
    avg_response_time: float
    min_response_time: float
    max_response_time: float
    success_rate: float
    error_rate: float
    methods: list[str]


class EndpointMetricsResponse(CamelModel):
    """Endpoint metrics response body."""

    success: bool = True
    data: list[EndpointMetrics]


class RequestEventResponse(CamelModel):
    """Wire representation of a stored event."""

    id: str
    api_key: str
    endpoint: str
    method: str
    status: int
    response_time: float
    timestamp: datetime

    @classmethod
    def from_model(cls, event: RequestEvent) -> "RequestEventResponse":
        """Build the wire shape from a stored event."""
        return cls(**event.model_dump())


class RecentRequestsResponse(CamelModel):
    """Paginated raw events."""

    success: bool = True
    data: list[RequestEventResponse]
    pagination: PaginationMetadata


class ErrorSummary(BaseModel):
    """Errors grouped by exact status code."""

    model_config = {"populate_by_name": True}

    id: int = Field(..., alias="_id", description="Status code")
    count: int
    endpoints: list[str] = Field(..., description="Distinct endpoints, sorted")


class ErrorReport(CamelModel):
    """Error page plus status summary."""

    errors: list[RequestEventResponse]
    summary: list[ErrorSummary]
    pagination: PaginationMetadata


class ErrorsResponse(CamelModel):
    """Errors response body."""

    success: bool = True
    data: ErrorReport
