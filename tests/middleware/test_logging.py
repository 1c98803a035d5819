"""Tests for logging middleware and the JSON formatter."""

import contextlib
import json
import logging
import uuid
from io import StringIO
from unittest.mock import patch

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient

from devmetrics.logging.config import JSONFormatter
from devmetrics.middleware.logging import LoggingMiddleware


@pytest.fixture
def app_with_logging() -> FastAPI:
    """Create a test FastAPI app with logging middleware."""
    app = FastAPI()
    app.add_middleware(LoggingMiddleware)

    @app.get("/test")
    async def test_endpoint(request: Request) -> dict[str, str]:
        return {"correlation_id": request.state.correlation_id}

    @app.post("/keyed")
    async def keyed_endpoint(request: Request) -> dict[str, str]:
        request.state.api_key = "dm_0123456789abcdef"
        return {}

    @app.get("/error")
    async def error_endpoint() -> None:
        raise ValueError("Test error")

    return app


@pytest.fixture
async def client(app_with_logging):
    transport = ASGITransport(app=app_with_logging)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def test_assigns_correlation_id(client) -> None:
    """Test a generated UUID in request state and response header."""
    response = await client.get("/test")

    assert response.status_code == 200
    correlation_id = response.json()["correlation_id"]
    uuid.UUID(correlation_id)
    assert response.headers["x-request-id"] == correlation_id


async def test_uses_existing_correlation_id(client) -> None:
    response = await client.get("/test", headers={"X-Request-ID": "abc-123"})

    assert response.json()["correlation_id"] == "abc-123"
    assert response.headers["x-request-id"] == "abc-123"


async def test_logs_request_start_and_completion(client) -> None:
    with patch("devmetrics.middleware.logging.logger") as mock_logger:
        await client.get("/test?foo=bar")

    first_call, last_call = mock_logger.info.call_args_list[0], mock_logger.info.call_args_list[-1]
    assert "Request started" in first_call[0]
    assert first_call[1]["extra"]["context"]["query_params"] == {"foo": "bar"}
    assert "Request completed" in last_call[0]
    context = last_call[1]["extra"]["context"]
    assert context["status_code"] == 200
    assert context["response_time_ms"] >= 0
    assert context["api_key"] is None


async def test_logs_only_masked_api_key(client) -> None:
    with patch("devmetrics.middleware.logging.logger") as mock_logger:
        await client.post("/keyed")

    context = mock_logger.info.call_args_list[-1][1]["extra"]["context"]
    assert context["api_key"] == "dm_0123456..."


async def test_logs_errors(client) -> None:
    with patch("devmetrics.middleware.logging.logger") as mock_logger:
        with contextlib.suppress(Exception):
            await client.get("/error")

    error_call = mock_logger.error.call_args_list[0]
    assert "Request failed with exception" in error_call[0]
    assert "exc_info" in error_call[1]


def _format(record_logger: logging.Logger, emit) -> dict:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    record_logger.handlers = [handler]
    record_logger.propagate = False
    record_logger.setLevel(logging.INFO)
    emit(record_logger)
    return json.loads(stream.getvalue().strip())


def test_json_formatter_merges_context() -> None:
    log_data = _format(
        logging.getLogger("test_json_logger"),
        lambda log: log.info(
            "Test message",
            extra={"correlation_id": "cid", "context": {"key": "value"}},
        ),
    )

    assert log_data["level"] == "INFO"
    assert log_data["message"] == "Test message"
    assert log_data["correlation_id"] == "cid"
    assert log_data["key"] == "value"
    assert log_data["logger"] == "test_json_logger"
    assert "timestamp" in log_data
    assert "environment" in log_data


def test_json_formatter_includes_exception_info() -> None:
    def emit(log: logging.Logger) -> None:
        try:
            raise ValueError("Test exception")
        except ValueError:
            log.exception("Error occurred")

    log_data = _format(logging.getLogger("test_exception_logger"), emit)

    assert log_data["level"] == "ERROR"
    assert "ValueError: Test exception" in log_data["exception"]
