"""Tests for the in-memory aggregation functions."""

from datetime import timedelta

import pytest

from devmetrics.services.aggregation import (
    MAX_TIME_BUCKETS,
    average,
    newest_first,
    percentage,
    requests_by_method,
    requests_over_time,
    status_class,
    summarize_endpoints,
    summarize_errors,
    summarize_key_usage,
    summarize_overview,
    top_endpoints,
)


@pytest.fixture
def scenario_events(make_event):
    """Three events for one key: /a succeeds once and fails once, /b fails."""
    return [
        make_event(endpoint="/a", status=200, response_time=50),
        make_event(endpoint="/a", status=500, response_time=80),
        make_event(endpoint="/b", status=404, response_time=30),
    ]


def test_overview_of_scenario(scenario_events) -> None:
    """Test totals, success rate and status classes for the sample scenario."""
    overview = summarize_overview(scenario_events)

    assert overview.total_requests == 3
    assert overview.success_rate == 33.33
    assert overview.avg_response_time == 53.33
    assert overview.min_response_time == 30
    assert overview.max_response_time == 80
    assert [(row.id, row.count) for row in overview.requests_by_status] == [
        ("2xx", 1),
        ("4xx", 1),
        ("5xx", 1),
    ]


def test_endpoint_metrics_of_scenario(scenario_events) -> None:
    """Test the /a row of the sample scenario."""
    rows = summarize_endpoints(scenario_events)

    assert [row.endpoint for row in rows] == ["/a", "/b"]
    endpoint_a = rows[0]
    assert endpoint_a.total_requests == 2
    assert endpoint_a.success_rate == 50.0
    assert endpoint_a.error_rate == 50.0
    assert endpoint_a.avg_response_time == 65.0
    assert endpoint_a.methods == ["GET"]


def test_overview_of_empty_set_is_all_zero() -> None:
    """Test that no events never produce NaN or None."""
    overview = summarize_overview([])

    assert overview.total_requests == 0
    assert overview.success_rate == 0
    assert overview.avg_response_time == 0
    assert overview.min_response_time == 0
    assert overview.max_response_time == 0
    assert overview.requests_by_status == []
    assert overview.requests_by_method == []
    assert overview.requests_over_time == []


def test_endpoint_rows_match_distinct_endpoints(make_event) -> None:
    """Test one row per endpoint with the right per-endpoint totals."""
    endpoints = ["/x"] * 4 + ["/y"] * 2 + ["/z"]
    events = [make_event(endpoint=endpoint) for endpoint in endpoints]

    rows = summarize_endpoints(events)

    assert len(rows) == 3
    assert {row.endpoint: row.total_requests for row in rows} == {
        "/x": 4,
        "/y": 2,
        "/z": 1,
    }
    assert [row.total_requests for row in rows] == [4, 2, 1]


def test_endpoint_methods_are_sorted_and_distinct(make_event) -> None:
    """Test that methods collapse to a sorted distinct list."""
    events = [
        make_event(endpoint="/x", method="POST"),
        make_event(endpoint="/x", method="GET"),
        make_event(endpoint="/x", method="POST"),
    ]

    assert summarize_endpoints(events)[0].methods == ["GET", "POST"]


def test_status_399_counts_as_success(make_event) -> None:
    """Test that the success boundary is status < 400."""
    events = [make_event(status=399), make_event(status=400)]

    assert summarize_overview(events).success_rate == 50.0


def test_requests_by_method_most_frequent_first(make_event) -> None:
    """Test method grouping order."""
    events = [
        make_event(method="POST"),
        make_event(method="GET"),
        make_event(method="GET"),
    ]

    rows = requests_by_method(events)

    assert [(row.id, row.count) for row in rows] == [("GET", 2), ("POST", 1)]


def test_requests_over_time_hourly_ascending(make_event, now) -> None:
    """Test hourly buckets are labeled and in chronological order."""
    events = [
        make_event(timestamp=now + timedelta(hours=1, minutes=5)),
        make_event(timestamp=now + timedelta(minutes=30)),
        make_event(timestamp=now),
    ]

    rows = requests_over_time(events)

    assert [(row.id, row.count) for row in rows] == [
        ("2025-11-11 12:00", 2),
        ("2025-11-11 13:00", 1),
    ]


def test_requests_over_time_keeps_latest_buckets(make_event, now) -> None:
    """Test that only the most recent buckets survive the cap."""
    events = [
        make_event(timestamp=now + timedelta(hours=hour))
        for hour in range(MAX_TIME_BUCKETS + 5)
    ]

    rows = requests_over_time(events)

    assert len(rows) == MAX_TIME_BUCKETS
    assert rows[-1].id == (now + timedelta(hours=MAX_TIME_BUCKETS + 4)).strftime(
        "%Y-%m-%d %H:00"
    )


def test_summarize_errors_groups_by_exact_status(make_event) -> None:
    """Test error summary counts and distinct sorted endpoints."""
    events = [
        make_event(status=500, endpoint="/b"),
        make_event(status=500, endpoint="/a"),
        make_event(status=500, endpoint="/a"),
        make_event(status=404, endpoint="/c"),
    ]

    summary = summarize_errors(events)

    assert [(row.id, row.count, row.endpoints) for row in summary] == [
        (500, 3, ["/a", "/b"]),
        (404, 1, ["/c"]),
    ]


def test_summarize_key_usage(make_event) -> None:
    """Test per-key statistics."""
    events = [
        make_event(endpoint="/a", status=200, response_time=10),
        make_event(endpoint="/a", status=201, response_time=20),
        make_event(endpoint="/b", status=503, response_time=30),
    ]

    stats = summarize_key_usage(events)

    assert stats.total_requests == 3
    assert stats.avg_response_time == 20.0
    assert stats.success_rate == 66.67
    assert stats.error_count == 1
    assert [(row.id, row.count) for row in stats.top_endpoints] == [("/a", 2), ("/b", 1)]


def test_top_endpoints_limit(make_event) -> None:
    """Test that only the busiest endpoints are kept."""
    events = [make_event(endpoint=f"/e{i}") for i in range(15)]

    assert len(top_endpoints(events)) == 10


def test_newest_first(make_event, now) -> None:
    """Test descending timestamp order."""
    older = make_event(timestamp=now - timedelta(minutes=1))
    newer = make_event(timestamp=now)

    assert newest_first([older, newer]) == [newer, older]


def test_group_rows_serialize_with_underscore_id(make_event) -> None:
    """Test the dashboard ``_id`` key in serialized group rows."""
    overview = summarize_overview([make_event()])
    dumped = overview.model_dump(by_alias=True)

    assert dumped["requestsByStatus"] == [{"_id": "2xx", "count": 1}]
    assert dumped["successRate"] == 100.0


@pytest.mark.parametrize(
    "status,expected", [(200, "2xx"), (301, "3xx"), (404, "4xx"), (599, "5xx")]
)
def test_status_class(status: int, expected: str) -> None:
    """Test status class labels."""
    assert status_class(status) == expected


def test_percentage_and_average_guard_empty_input() -> None:
    """Test zero denominators."""
    assert percentage(0, 0) == 0.0
    assert average([]) == 0.0
    assert percentage(1, 3) == 33.33
