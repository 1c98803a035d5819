"""Sliding-window admission control backed by event counts."""

from datetime import datetime, timedelta

from devmetrics.exceptions import RateLimitError
from devmetrics.logging.config import get_logger
from devmetrics.models.api_key import ApiKey
from devmetrics.repositories.request_repository import RequestRepository
from devmetrics.utils.timestamps import utcnow

logger = get_logger(__name__)

HOUR = timedelta(hours=1)
DAY = timedelta(days=1)


class RateLimiter:
    """
    Per-key rate limiter with exact sliding windows.

    Each check counts the key's stored events in the trailing hour and the
    trailing day. No counter state is kept in process, so concurrent
    ingests and multiple workers all see the same count.
    """

    def __init__(self, repository: RequestRepository | None = None) -> None:
        """
        Initialize rate limiter.

        Args:
            repository: RequestRepository used for window counts
        """
        self.repository = repository or RequestRepository()

    async def check_rate_limit(
        self, api_key: ApiKey, now: datetime | None = None
    ) -> None:
        """
        Admit or deny one more event for the key at ``now``.

        Args:
            api_key: Authenticated key with its configured limits
            now: Reference time (defaults to the current UTC time)

        Raises:
            RateLimitError: If the hourly or daily ceiling is reached
        """
        now = now or utcnow()

        for window, span, limit in (
            ("hour", HOUR, api_key.requests_per_hour),
            ("day", DAY, api_key.requests_per_day),
        ):
            count = await self.repository.count_since(api_key.key, now - span)
            if count >= limit:
                # Advisory only: a sliding window has no fixed reset boundary
                reset_at = now + span
                logger.warning(
                    "Rate limit exceeded",
                    extra={
                        "context": {
                            "window": window,
                            "limit": limit,
                            "count": count,
                        }
                    },
                )
                raise RateLimitError(
                    limit=limit,
                    reset_at=reset_at,
                    window=window,
                    retry_after=int(span.total_seconds()),
                )
