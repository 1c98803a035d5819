"""Analytics read side: overview, endpoint, recent and error views."""

from datetime import datetime

from devmetrics.repositories.request_repository import RequestRepository
from devmetrics.schemas.metrics import (
    EndpointMetrics,
    ErrorReport,
    MetricsFilter,
    Overview,
    RequestEventResponse,
)
from devmetrics.schemas.common import PaginationMetadata
from devmetrics.services.aggregation import (
    ERROR_STATUS_THRESHOLD,
    newest_first,
    summarize_endpoints,
    summarize_errors,
    summarize_overview,
)
from devmetrics.utils.pagination import paginate


class MetricsService:
    """
    Service layer for analytics queries.

    Aggregates are recomputed on every call from the event store; reads
    observe whatever has been committed when the scan runs.
    """

    def __init__(self, repository: RequestRepository | None = None) -> None:
        """
        Initialize MetricsService.

        Args:
            repository: RequestRepository instance (creates new if None)
        """
        self.repository = repository or RequestRepository()

    async def overview(self, filters: MetricsFilter) -> Overview:
        """Totals, success rate, latency and grouped counts."""
        events = await self.repository.find(filters)
        return summarize_overview(events)

    async def endpoints(self, filters: MetricsFilter) -> list[EndpointMetrics]:
        """Per-endpoint metrics, busiest endpoint first."""
        events = await self.repository.find(filters)
        return summarize_endpoints(events)

    async def recent(
        self,
        page: int,
        limit: int,
        api_key: str | None = None,
        status: int | None = None,
        endpoint: str | None = None,
    ) -> tuple[list[RequestEventResponse], PaginationMetadata]:
        """
        Raw events, newest first, one page at a time.

        Args:
            page: 1-based page
            limit: Page size
            api_key: Optional key filter
            status: Optional exact status filter
            endpoint: Optional endpoint filter

        Returns:
            Tuple of (page of events, pagination metadata)
        """
        events = await self.repository.find(
            MetricsFilter(api_key=api_key, status=status, endpoint=endpoint)
        )
        data, pagination = paginate(newest_first(events), page, limit)
        return [RequestEventResponse.from_model(event) for event in data], pagination

    async def errors(
        self,
        page: int,
        limit: int,
        api_key: str | None = None,
        min_status: int = ERROR_STATUS_THRESHOLD,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> ErrorReport:
        """
        Error events (status >= min_status) plus a per-status summary.

        The summary covers every matching event, not only the current page.
        """
        events = await self.repository.find(
            MetricsFilter(
                api_key=api_key,
                min_status=min_status,
                start_date=start_date,
                end_date=end_date,
            )
        )
        data, pagination = paginate(newest_first(events), page, limit)
        return ErrorReport(
            errors=[RequestEventResponse.from_model(event) for event in data],
            summary=summarize_errors(events),
            pagination=pagination,
        )
