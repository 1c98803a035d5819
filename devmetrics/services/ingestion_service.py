"""Ingestion pipeline: the single write path for request events."""

import asyncio
import uuid

from botocore.exceptions import BotoCoreError, ClientError

from devmetrics.auth.api_key import is_valid, mask_api_key
from devmetrics.exceptions import AuthenticationError, StorageError
from devmetrics.logging.config import get_logger
from devmetrics.middleware.rate_limit import RateLimiter
from devmetrics.models.request_event import RequestEvent
from devmetrics.repositories.api_key_repository import ApiKeyRepository
from devmetrics.repositories.request_repository import RequestRepository
from devmetrics.schemas.track import TrackRequest
from devmetrics.utils.timestamps import ensure_utc, utcnow

logger = get_logger(__name__)

# Strong references to in-flight usage updates; the event loop only keeps
# weak ones.
_background_tasks: set[asyncio.Task] = set()


async def wait_for_background_tasks() -> None:
    """Wait for every scheduled usage update to finish (shutdown, tests)."""
    while _background_tasks:
        await asyncio.gather(*list(_background_tasks), return_exceptions=True)


class IngestionService:
    """
    Service layer for event ingestion.

    Runs validate -> authenticate -> admission-check -> persist and then
    schedules the key's usage increment as a detached task. Shape
    validation happens in TrackRequest before this service is called.
    """

    def __init__(
        self,
        repository: RequestRepository | None = None,
        api_key_repository: ApiKeyRepository | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """
        Initialize IngestionService.

        Args:
            repository: RequestRepository instance (creates new if None)
            api_key_repository: ApiKeyRepository instance (creates new if None)
            rate_limiter: RateLimiter instance (shares ``repository`` if None)
        """
        self.repository = repository or RequestRepository()
        self.api_key_repository = api_key_repository or ApiKeyRepository()
        self.rate_limiter = rate_limiter or RateLimiter(self.repository)

    async def ingest(self, request: TrackRequest, api_key: str | None = None) -> RequestEvent:
        """
        Accept or reject one reported API call.

        Args:
            request: Validated track payload
            api_key: Key from the X-API-Key header, used when the body has none

        Returns:
            The persisted RequestEvent

        Raises:
            AuthenticationError: Unknown, inactive or expired key (401)
            RateLimitError: Hourly or daily quota reached (429)
            StorageError: The event could not be persisted (500)
        """
        key = request.api_key or api_key
        if not key:
            raise AuthenticationError(message="Invalid API key")

        record = await self.api_key_repository.get_by_key(key)
        if record is None:
            raise AuthenticationError(message="Invalid API key")

        now = utcnow()
        if not is_valid(record, now):
            raise AuthenticationError(message="API key is inactive or expired")

        await self.rate_limiter.check_rate_limit(record, now)

        event = RequestEvent(
            id=str(uuid.uuid4()),
            api_key=key,
            endpoint=request.endpoint,
            method=request.method.upper(),
            status=request.status,
            response_time=request.response_time,
            timestamp=ensure_utc(request.timestamp) if request.timestamp else now,
        )

        try:
            await self.repository.create(event)
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(message="Failed to track request", cause=exc) from exc

        self._schedule_usage_increment(key)
        return event

    def _schedule_usage_increment(self, key: str) -> None:
        task = asyncio.create_task(self._increment_usage(key))
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)

    async def _increment_usage(self, key: str) -> None:
        """Best-effort usage update; failures are logged, never raised."""
        try:
            updated = await self.api_key_repository.increment_usage(key)
        except Exception as exc:
            logger.warning(
                "Failed to increment API key usage",
                exc_info=exc,
                extra={"context": {"api_key": mask_api_key(key)}},
            )
            return

        if updated is None:
            logger.warning(
                "API key disappeared before usage increment",
                extra={"context": {"api_key": mask_api_key(key)}},
            )
