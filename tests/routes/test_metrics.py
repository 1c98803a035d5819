"""Tests for the /metrics analytics routes."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import status
from httpx import ASGITransport, AsyncClient

from devmetrics.main import app
from devmetrics.schemas.metrics import ErrorReport, RequestEventResponse
from devmetrics.services.aggregation import (
    summarize_endpoints,
    summarize_errors,
    summarize_overview,
)
from devmetrics.utils.pagination import paginate


@pytest.fixture
def metrics_service():
    """Patch MetricsService as seen by the routes."""
    with patch("devmetrics.routes.metrics.MetricsService") as service_cls:
        service = AsyncMock()
        service_cls.return_value = service
        yield service


@pytest.fixture
async def client():
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client


@pytest.mark.parametrize("path", ["overview", "endpoint", "recent", "errors"])
async def test_metrics_require_admin_header(client, admin_headers, path) -> None:
    response = await client.get(f"/metrics/{path}")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error_code"] == "UNAUTHORIZED"


async def test_metrics_reject_wrong_admin_key(client, admin_headers) -> None:
    response = await client.get(
        "/metrics/overview", headers={"X-Admin-Key": "wrong"}
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["error_code"] == "FORBIDDEN"


async def test_overview_shape(client, admin_headers, metrics_service, make_event) -> None:
    """Test the camelCase, ``_id``-keyed body the dashboard reads."""
    metrics_service.overview.return_value = summarize_overview(
        [make_event(status=200, response_time=50), make_event(status=500, response_time=80)]
    )

    response = await client.get(
        "/metrics/overview",
        params={"startDate": "2025-11-01T00:00:00Z", "apiKey": "dm_key"},
        headers=admin_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["success"] is True
    data = body["data"]
    assert data["totalRequests"] == 2
    assert data["successRate"] == 50.0
    assert data["avgResponseTime"] == 65.0
    assert data["requestsByStatus"] == [
        {"_id": "2xx", "count": 1},
        {"_id": "5xx", "count": 1},
    ]
    assert data["requestsOverTime"] == [{"_id": "2025-11-11 12:00", "count": 2}]

    filters = metrics_service.overview.await_args.args[0]
    assert filters.api_key == "dm_key"
    assert filters.start_date.year == 2025
    assert filters.end_date is None


async def test_endpoint_metrics_shape(
    client, admin_headers, metrics_service, make_event
) -> None:
    metrics_service.endpoints.return_value = summarize_endpoints(
        [make_event(endpoint="/a", method="POST"), make_event(endpoint="/a")]
    )

    response = await client.get("/metrics/endpoint", headers=admin_headers)

    [row] = response.json()["data"]
    assert row["endpoint"] == "/a"
    assert row["totalRequests"] == 2
    assert row["methods"] == ["GET", "POST"]
    assert row["errorRate"] == 0.0


async def test_recent_pagination(client, admin_headers, metrics_service, make_event) -> None:
    events = [RequestEventResponse.from_model(make_event())]
    metrics_service.recent.return_value = paginate(events, 2, 1)

    response = await client.get(
        "/metrics/recent",
        params={"page": 2, "limit": 1, "status": 200},
        headers=admin_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["data"] == []
    assert body["pagination"] == {"page": 2, "limit": 1, "total": 1, "pages": 1}
    metrics_service.recent.assert_awaited_once_with(
        page=2, limit=1, api_key=None, status=200, endpoint=None
    )


@pytest.mark.parametrize("limit", [0, 1001])
async def test_recent_rejects_out_of_range_limit(
    client, admin_headers, metrics_service, limit
) -> None:
    response = await client.get(
        "/metrics/recent", params={"limit": limit}, headers=admin_headers
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["errors"][0]["field"] == "limit"


async def test_errors_shape(client, admin_headers, metrics_service, make_event) -> None:
    events = [make_event(status=503, endpoint="/b"), make_event(status=503, endpoint="/a")]
    page, pagination = paginate(events, 1, 50)
    metrics_service.errors.return_value = ErrorReport(
        errors=[RequestEventResponse.from_model(event) for event in page],
        summary=summarize_errors(events),
        pagination=pagination,
    )

    response = await client.get(
        "/metrics/errors", params={"minStatus": 500}, headers=admin_headers
    )

    data = response.json()["data"]
    assert data["summary"] == [{"_id": 503, "count": 2, "endpoints": ["/a", "/b"]}]
    assert data["errors"][0]["responseTime"] == 100.0
    assert data["pagination"]["total"] == 2
    assert metrics_service.errors.await_args.kwargs["min_status"] == 500


async def test_overview_passes_end_date_unchanged(
    client, admin_headers, metrics_service
) -> None:
    """Test that endDate reaches the filter as the inclusive upper bound."""
    metrics_service.overview.return_value = summarize_overview([])

    response = await client.get(
        "/metrics/overview",
        params={"endDate": "2025-11-11T23:59:59.999999Z"},
        headers=admin_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    filters = metrics_service.overview.await_args.args[0]
    assert filters.end_date.isoformat() == "2025-11-11T23:59:59.999999+00:00"
