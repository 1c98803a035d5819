"""Shared fixtures: model factories and an in-memory stand-in for a Table."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest

from devmetrics.config import settings
from devmetrics.models.api_key import ApiKey
from devmetrics.models.request_event import RequestEvent

VALID_KEY = "dm_" + "a" * 64
ADMIN_KEY = "test-admin-key"
NOW = datetime(2025, 11, 11, 12, 0, tzinfo=timezone.utc)


class FakeTable:
    """Table resource double whose operations are AsyncMocks."""

    def __init__(self) -> None:
        self.put_item = AsyncMock(return_value={})
        self.get_item = AsyncMock(return_value={})
        self.update_item = AsyncMock(return_value={"Attributes": {}})
        self.delete_item = AsyncMock(return_value={})
        self.query = AsyncMock(return_value={"Items": [], "Count": 0})
        self.scan = AsyncMock(return_value={"Items": []})


def use_table(repository: Any, table: FakeTable) -> None:
    """Route a repository's table() context to ``table``."""

    @asynccontextmanager
    async def _table():
        yield table

    repository.table = _table


@pytest.fixture
def fake_table() -> FakeTable:
    return FakeTable()


@pytest.fixture
def make_api_key() -> Callable[..., ApiKey]:
    """Factory for ApiKey models with sensible defaults."""

    def _make(**overrides: Any) -> ApiKey:
        data: dict[str, Any] = {
            "key": VALID_KEY,
            "owner": "billing-service",
            "description": "",
            "status": "active",
            "usage_count": 0,
            "requests_per_hour": 10_000,
            "requests_per_day": 100_000,
            "created_at": NOW,
        }
        data.update(overrides)
        return ApiKey(**data)

    return _make


@pytest.fixture
def make_event() -> Callable[..., RequestEvent]:
    """Factory for RequestEvent models; ids are unique per call."""
    counter = {"n": 0}

    def _make(**overrides: Any) -> RequestEvent:
        counter["n"] += 1
        data: dict[str, Any] = {
            "id": f"evt-{counter['n']}",
            "api_key": VALID_KEY,
            "endpoint": "/api/users",
            "method": "GET",
            "status": 200,
            "response_time": 100.0,
            "timestamp": NOW,
        }
        data.update(overrides)
        return RequestEvent(**data)

    return _make


@pytest.fixture
def admin_headers(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Configure an admin credential and return the matching header."""
    monkeypatch.setattr(settings, "admin_key", ADMIN_KEY)
    return {"X-Admin-Key": ADMIN_KEY}


@pytest.fixture
def valid_key() -> str:
    return VALID_KEY


@pytest.fixture
def now() -> datetime:
    """Fixed reference time used by the factories."""
    return NOW


@pytest.fixture
def attach_table(fake_table: FakeTable) -> Callable[[Any], Any]:
    """Point a repository at ``fake_table`` and return it."""

    def _attach(repository: Any) -> Any:
        use_table(repository, fake_table)
        return repository

    return _attach
