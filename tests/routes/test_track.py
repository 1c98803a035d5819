"""Integration tests for POST /track with mocked repositories."""

import json
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from botocore.exceptions import ClientError
from fastapi import status
from httpx import ASGITransport, AsyncClient

from devmetrics.main import app
from devmetrics.services.ingestion_service import wait_for_background_tasks


@pytest.fixture
def repositories(make_api_key):
    """Patch both repositories used by the ingestion pipeline."""
    with (
        patch("devmetrics.services.ingestion_service.RequestRepository") as request_cls,
        patch("devmetrics.services.ingestion_service.ApiKeyRepository") as key_cls,
    ):
        requests = AsyncMock()
        requests.count_since = AsyncMock(return_value=0)
        requests.create = AsyncMock(side_effect=lambda event: event)
        request_cls.return_value = requests

        keys = AsyncMock()
        keys.get_by_key = AsyncMock(return_value=make_api_key())
        keys.increment_usage = AsyncMock(return_value=make_api_key(usage_count=1))
        key_cls.return_value = keys

        yield requests, keys


@pytest.fixture
async def client():
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client


@pytest.fixture
def payload(valid_key) -> dict:
    return {
        "apiKey": valid_key,
        "endpoint": "/api/users",
        "method": "post",
        "status": 201,
        "responseTime": 42.5,
    }


async def test_track_success(client, repositories, payload, valid_key) -> None:
    """Test a valid event is stored and usage is counted."""
    requests, keys = repositories

    response = await client.post("/track", json=payload)
    await wait_for_background_tasks()

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["success"] is True
    assert data["message"] == "Request tracked successfully"

    stored = requests.create.await_args.args[0]
    assert data["id"] == stored.id
    assert stored.method == "POST"
    assert stored.status == 201
    assert stored.response_time == 42.5
    keys.increment_usage.assert_awaited_once_with(valid_key)


async def test_track_reports_every_invalid_field(client, repositories, valid_key) -> None:
    """Test that all violations are listed and nothing is stored."""
    requests, _ = repositories

    response = await client.post(
        "/track",
        json={
            "apiKey": valid_key,
            "endpoint": "",
            "method": "FETCH",
            "status": 700,
            "responseTime": -1,
        },
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    data = response.json()
    assert data["success"] is False
    assert data["error_code"] == "VALIDATION_ERROR"
    assert {error["field"] for error in data["errors"]} == {
        "endpoint",
        "method",
        "status",
        "responseTime",
    }
    requests.create.assert_not_awaited()


async def test_track_missing_required_fields(client, repositories, valid_key) -> None:
    response = await client.post("/track", json={"apiKey": valid_key})

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    errors = response.json()["errors"]
    assert {error["field"] for error in errors} == {
        "endpoint",
        "method",
        "status",
        "responseTime",
    }
    assert all(error["message"] == "Field is required" for error in errors)


@pytest.mark.parametrize(
    "field, raw_value",
    [
        ("responseTime", "Infinity"),
        ("responseTime", "NaN"),
        ("responseTime", "true"),
        ("responseTime", '"42"'),
        ("status", '"200"'),
        ("status", "true"),
        ("status", "200.5"),
    ],
)
async def test_track_rejects_coerced_or_non_finite_numbers(
    client, repositories, payload, field, raw_value
) -> None:
    """Test that numbers must arrive as finite JSON numbers of the right type."""
    requests, _ = repositories
    payload[field] = "__placeholder__"
    body = json.dumps(payload).replace('"__placeholder__"', raw_value)

    response = await client.post(
        "/track", content=body, headers={"Content-Type": "application/json"}
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert [error["field"] for error in response.json()["errors"]] == [field]
    requests.count_since.assert_not_awaited()
    requests.create.assert_not_awaited()


async def test_track_accepts_integer_response_time(client, repositories, payload) -> None:
    requests, _ = repositories
    payload["responseTime"] = 42

    response = await client.post("/track", json=payload)
    await wait_for_background_tasks()

    assert response.status_code == status.HTTP_201_CREATED
    assert requests.create.await_args.args[0].response_time == 42.0


async def test_track_without_key_is_401(client, repositories, payload) -> None:
    del payload["apiKey"]

    response = await client.post("/track", json=payload)

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error_code"] == "UNAUTHORIZED"
    assert response.json()["message"] == "Invalid API key"


async def test_track_accepts_header_key(client, repositories, payload, valid_key) -> None:
    _, keys = repositories
    del payload["apiKey"]

    response = await client.post("/track", json=payload, headers={"X-API-Key": valid_key})
    await wait_for_background_tasks()

    assert response.status_code == status.HTTP_201_CREATED
    keys.get_by_key.assert_awaited_once_with(valid_key)


async def test_track_with_revoked_key_is_401(
    client, repositories, payload, make_api_key
) -> None:
    requests, keys = repositories
    keys.get_by_key.return_value = make_api_key(status="revoked")

    response = await client.post("/track", json=payload)

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["message"] == "API key is inactive or expired"
    requests.count_since.assert_not_awaited()
    requests.create.assert_not_awaited()


async def test_track_with_expired_key_is_401(
    client, repositories, payload, make_api_key, now
) -> None:
    _, keys = repositories
    keys.get_by_key.return_value = make_api_key(expires_at=now - timedelta(days=1))

    response = await client.post("/track", json=payload)

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


async def test_track_over_quota_is_429(client, repositories, payload) -> None:
    """Test the 429 body, the Retry-After header and that nothing is stored."""
    requests, _ = repositories
    requests.count_since.return_value = 10_000

    response = await client.post("/track", json=payload)

    assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert response.headers["Retry-After"] == "3600"
    data = response.json()
    assert data["error_code"] == "RATE_LIMIT_EXCEEDED"
    assert data["details"]["limit"] == 10_000
    assert "resetAt" in data["details"]
    requests.create.assert_not_awaited()


async def test_track_store_failure_is_500(client, repositories, payload) -> None:
    requests, _ = repositories
    requests.create.side_effect = ClientError(
        {"Error": {"Code": "InternalServerError", "Message": "boom"}}, "PutItem"
    )

    response = await client.post("/track", json=payload)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    data = response.json()
    assert data["error_code"] == "STORAGE_ERROR"
    assert data["success"] is False


async def test_track_propagates_request_id(client, repositories, payload) -> None:
    response = await client.post(
        "/track", json=payload, headers={"X-Request-ID": "req-123"}
    )
    await wait_for_background_tasks()

    assert response.headers["X-Request-ID"] == "req-123"


async def test_track_oversized_payload_is_413(client, repositories, payload) -> None:
    payload["endpoint"] = "/" + "x" * (70 * 1024)

    response = await client.post("/track", json=payload)

    assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    assert response.json()["error_code"] == "PAYLOAD_TOO_LARGE"
    repositories[0].create.assert_not_awaited()
