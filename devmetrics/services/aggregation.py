"""In-memory reductions that turn request events into analytics views.

Every function takes an iterable of already-filtered events and never
produces NaN, Infinity or None for numeric fields: empty inputs yield 0.
Averages and percentages are rounded to two decimals.
"""

from collections import Counter, defaultdict
from typing import Iterable, Sequence

from devmetrics.models.request_event import RequestEvent
from devmetrics.schemas.api_key import KeyStatistics
from devmetrics.schemas.common import GroupCount
from devmetrics.schemas.metrics import EndpointMetrics, ErrorSummary, Overview
from devmetrics.utils.timestamps import hour_bucket

# Hourly buckets kept in the overview (7 days); fixed to bound response size
MAX_TIME_BUCKETS = 168
TOP_ENDPOINTS_LIMIT = 10
ERROR_STATUS_THRESHOLD = 400


def is_success(status: int) -> bool:
    """Statuses below 400 count as successes."""
    return status < ERROR_STATUS_THRESHOLD


def status_class(status: int) -> str:
    """Bucket a status code into its class label, e.g. 404 -> '4xx'."""
    return f"{status // 100}xx"


def percentage(part: int, total: int) -> float:
    """``part / total * 100`` rounded to 2 decimals, 0 when total is 0."""
    if total <= 0:
        return 0.0
    return round(part / total * 100, 2)


def average(values: Sequence[float]) -> float:
    """Mean rounded to 2 decimals, 0 for an empty sequence."""
    if not values:
        return 0.0
    return round(sum(values) / len(values), 2)


def _response_time_bounds(values: Sequence[float]) -> tuple[float, float]:
    if not values:
        return 0.0, 0.0
    return float(min(values)), float(max(values))


def requests_by_status(events: Iterable[RequestEvent]) -> list[GroupCount]:
    """Counts per status class, sorted by class label ascending."""
    counts = Counter(status_class(event.status) for event in events)
    return [GroupCount(id=label, count=counts[label]) for label in sorted(counts)]


def requests_by_method(events: Iterable[RequestEvent]) -> list[GroupCount]:
    """Counts per method, most frequent first."""
    counts = Counter(event.method for event in events)
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [GroupCount(id=method, count=count) for method, count in ordered]


def requests_over_time(
    events: Iterable[RequestEvent], max_buckets: int = MAX_TIME_BUCKETS
) -> list[GroupCount]:
    """
    Hourly counts in chronological order.

    Only the most recent ``max_buckets`` non-empty hours are kept.
    """
    counts = Counter(hour_bucket(event.timestamp) for event in events)
    buckets = sorted(counts)[-max_buckets:]
    return [GroupCount(id=bucket, count=counts[bucket]) for bucket in buckets]


def top_endpoints(
    events: Iterable[RequestEvent], limit: int = TOP_ENDPOINTS_LIMIT
) -> list[GroupCount]:
    """The ``limit`` endpoints with the most requests."""
    counts = Counter(event.endpoint for event in events)
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [GroupCount(id=endpoint, count=count) for endpoint, count in ordered[:limit]]


def summarize_overview(events: Sequence[RequestEvent]) -> Overview:
    """
    Compute the overview view.

    Args:
        events: Filtered events

    Returns:
        Totals, success rate, latency stats and grouped counts
    """
    total = len(events)
    times = [event.response_time for event in events]
    successes = sum(1 for event in events if is_success(event.status))
    min_time, max_time = _response_time_bounds(times)

    return Overview(
        total_requests=total,
        success_rate=percentage(successes, total),
        avg_response_time=average(times),
        min_response_time=min_time,
        max_response_time=max_time,
        requests_by_status=requests_by_status(events),
        requests_by_method=requests_by_method(events),
        requests_over_time=requests_over_time(events),
    )


def summarize_endpoints(events: Iterable[RequestEvent]) -> list[EndpointMetrics]:
    """
    Compute per-endpoint metrics.

    Args:
        events: Filtered events

    Returns:
        One row per distinct endpoint, busiest first
    """
    grouped: dict[str, list[RequestEvent]] = defaultdict(list)
    for event in events:
        grouped[event.endpoint].append(event)

    rows = []
    for endpoint, endpoint_events in grouped.items():
        total = len(endpoint_events)
        times = [event.response_time for event in endpoint_events]
        successes = sum(1 for event in endpoint_events if is_success(event.status))
        min_time, max_time = _response_time_bounds(times)
        rows.append(
            EndpointMetrics(
                endpoint=endpoint,
                total_requests=total,
                avg_response_time=average(times),
                min_response_time=min_time,
                max_response_time=max_time,
                success_rate=percentage(successes, total),
                error_rate=percentage(total - successes, total),
                methods=sorted({event.method for event in endpoint_events}),
            )
        )

    rows.sort(key=lambda row: (-row.total_requests, row.endpoint))
    return rows


def summarize_errors(events: Iterable[RequestEvent]) -> list[ErrorSummary]:
    """
    Group error events by exact status code.

    Args:
        events: Events already filtered to error statuses

    Returns:
        Count and distinct endpoints per status, most frequent first
    """
    counts: Counter[int] = Counter()
    endpoints: dict[int, set[str]] = defaultdict(set)
    for event in events:
        counts[event.status] += 1
        endpoints[event.status].add(event.endpoint)

    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [
        ErrorSummary(id=status, count=count, endpoints=sorted(endpoints[status]))
        for status, count in ordered
    ]


def summarize_key_usage(events: Sequence[RequestEvent]) -> KeyStatistics:
    """
    Compute usage statistics of a single key.

    Args:
        events: Events of one key

    Returns:
        Totals, average latency, success rate, error count, top endpoints
    """
    total = len(events)
    successes = sum(1 for event in events if is_success(event.status))

    return KeyStatistics(
        total_requests=total,
        avg_response_time=average([event.response_time for event in events]),
        success_rate=percentage(successes, total),
        error_count=total - successes,
        top_endpoints=top_endpoints(events),
    )


def newest_first(events: Iterable[RequestEvent]) -> list[RequestEvent]:
    """Order events by timestamp descending (ties by id for stable pages)."""
    return sorted(events, key=lambda event: (event.timestamp, event.id), reverse=True)
