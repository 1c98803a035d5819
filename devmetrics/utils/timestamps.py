"""UTC timestamp helpers.

Timestamps are stored as fixed-width ISO 8601 strings so that string order
matches chronological order in DynamoDB range conditions.
"""

from datetime import datetime, timezone

ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
HOUR_BUCKET_FORMAT = "%Y-%m-%d %H:00"


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: datetime) -> str:
    """Format a datetime as a sortable UTC string."""
    return ensure_utc(value).strftime(ISO_FORMAT)


def from_iso(value: str) -> datetime:
    """Parse a stored timestamp back into an aware datetime."""
    return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def hour_bucket(value: datetime) -> str:
    """Truncate a timestamp to its hourly bucket label."""
    return ensure_utc(value).strftime(HOUR_BUCKET_FORMAT)
