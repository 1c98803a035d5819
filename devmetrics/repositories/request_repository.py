"""Request event repository for DynamoDB operations."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from boto3.dynamodb.conditions import Attr, Key

from devmetrics.config import settings
from devmetrics.models.request_event import RequestEvent
from devmetrics.repositories.base import BaseRepository
from devmetrics.schemas.metrics import MetricsFilter
from devmetrics.utils.timestamps import from_iso, to_iso

API_KEY_TIMESTAMP_INDEX = "ApiKeyTimestampIndex"
ENDPOINT_TIMESTAMP_INDEX = "EndpointTimestampIndex"
STATUS_TIMESTAMP_INDEX = "StatusTimestampIndex"


def _timestamp_key_condition(start: datetime | None, end: datetime | None) -> Any:
    """Sort-key range condition on timestamp, None when unbounded."""
    if start and end:
        return Key("timestamp").between(to_iso(start), to_iso(end))
    if start:
        return Key("timestamp").gte(to_iso(start))
    if end:
        return Key("timestamp").lte(to_iso(end))
    return None


def _and(condition: Any, other: Any) -> Any:
    if condition is None:
        return other
    return condition & other


class RequestRepository(BaseRepository):
    """
    Append-only store of request events.

    Events are written once and never updated. Reads pick the narrowest
    (hash key, timestamp) index for the filter and push the remaining
    predicates into a FilterExpression.
    """

    def __init__(self) -> None:
        """Initialize RequestRepository with the requests table."""
        super().__init__(settings.dynamodb_table_requests)

    @staticmethod
    def _serialize(event: RequestEvent) -> dict[str, Any]:
        """Convert an event to a DynamoDB item (floats become Decimal)."""
        return {
            "id": event.id,
            "api_key": event.api_key,
            "endpoint": event.endpoint,
            "method": event.method,
            "status": event.status,
            "response_time": Decimal(str(event.response_time)),
            "timestamp": to_iso(event.timestamp),
        }

    @staticmethod
    def _deserialize(item: dict[str, Any]) -> RequestEvent:
        """Convert a DynamoDB item back into a RequestEvent."""
        return RequestEvent(
            id=item["id"],
            api_key=item["api_key"],
            endpoint=item["endpoint"],
            method=item["method"],
            status=int(item["status"]),
            response_time=float(item["response_time"]),
            timestamp=from_iso(item["timestamp"]),
        )

    async def create(self, event: RequestEvent) -> RequestEvent:
        """
        Append an event.

        Args:
            event: RequestEvent to store

        Returns:
            The stored event
        """
        await self.put_item(self._serialize(event))
        return event

    async def count_since(self, api_key: str, since: datetime) -> int:
        """
        Count events of one key with ``timestamp >= since``.

        Args:
            api_key: Key string
            since: Inclusive lower bound of the window

        Returns:
            Number of events in the window
        """
        return await self.count(
            IndexName=API_KEY_TIMESTAMP_INDEX,
            KeyConditionExpression=(
                Key("api_key").eq(api_key) & Key("timestamp").gte(to_iso(since))
            ),
        )

    async def find(self, filters: MetricsFilter | None = None) -> list[RequestEvent]:
        """
        Return every event matching the filter, unordered.

        Args:
            filters: Date range and equality predicates

        Returns:
            Matching events
        """
        filters = filters or MetricsFilter()
        time_range = _timestamp_key_condition(filters.start_date, filters.end_date)

        remaining = None
        if filters.status is not None:
            remaining = _and(remaining, Attr("status").eq(filters.status))
        if filters.min_status is not None:
            remaining = _and(remaining, Attr("status").gte(filters.min_status))

        params: dict[str, Any] = {}
        if filters.api_key:
            key_condition = Key("api_key").eq(filters.api_key)
            if filters.endpoint:
                remaining = _and(remaining, Attr("endpoint").eq(filters.endpoint))
            params["IndexName"] = API_KEY_TIMESTAMP_INDEX
        elif filters.endpoint:
            key_condition = Key("endpoint").eq(filters.endpoint)
            params["IndexName"] = ENDPOINT_TIMESTAMP_INDEX
        elif filters.status is not None:
            key_condition = Key("status").eq(filters.status)
            remaining = None
            if filters.min_status is not None:
                remaining = Attr("status").gte(filters.min_status)
            params["IndexName"] = STATUS_TIMESTAMP_INDEX
        else:
            key_condition = None

        if key_condition is None:
            # No hash key to query on, fall back to a filtered scan
            if time_range is not None:
                remaining = _and(
                    remaining, self._scan_time_range(filters.start_date, filters.end_date)
                )
            if remaining is not None:
                params["FilterExpression"] = remaining
            items = await self.scan_all(**params)
        else:
            if time_range is not None:
                key_condition = key_condition & time_range
            params["KeyConditionExpression"] = key_condition
            if remaining is not None:
                params["FilterExpression"] = remaining
            items = await self.query_all(**params)

        return [self._deserialize(item) for item in items]

    @staticmethod
    def _scan_time_range(start: datetime | None, end: datetime | None) -> Any:
        if start and end:
            return Attr("timestamp").between(to_iso(start), to_iso(end))
        if start:
            return Attr("timestamp").gte(to_iso(start))
        return Attr("timestamp").lte(to_iso(end))
