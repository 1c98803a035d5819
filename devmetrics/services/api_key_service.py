"""API key registry service: lifecycle, validity and usage statistics."""

from datetime import datetime
from typing import Any

from devmetrics.auth.api_key import generate_api_key, is_valid
from devmetrics.config import settings
from devmetrics.exceptions import NotFoundError, ValidationError
from devmetrics.logging.config import get_logger
from devmetrics.models.api_key import ApiKey, ApiKeyStatus
from devmetrics.repositories.api_key_repository import ApiKeyRepository
from devmetrics.repositories.request_repository import RequestRepository
from devmetrics.schemas.api_key import (
    ApiKeyStats,
    KeyMetadata,
    RateLimitUpdate,
    UpdateApiKeyRequest,
)
from devmetrics.schemas.common import PaginationMetadata
from devmetrics.schemas.metrics import MetricsFilter
from devmetrics.services.aggregation import summarize_key_usage
from devmetrics.utils.pagination import paginate
from devmetrics.utils.timestamps import utcnow

logger = get_logger(__name__)

VALID_STATUSES = {status.value for status in ApiKeyStatus}


class ApiKeyService:
    """
    Service layer for API key operations.

    Orchestrates creation, registration, listing, partial updates,
    revocation versus permanent deletion, and per-key statistics.
    """

    def __init__(
        self,
        repository: ApiKeyRepository | None = None,
        request_repository: RequestRepository | None = None,
    ) -> None:
        """
        Initialize ApiKeyService.

        Args:
            repository: ApiKeyRepository instance (creates new if None)
            request_repository: RequestRepository for stats (creates new if None)
        """
        self.repository = repository or ApiKeyRepository()
        self.request_repository = request_repository or RequestRepository()

    async def create(
        self,
        owner: Any,
        description: str | None = None,
        rate_limit: RateLimitUpdate | None = None,
        expires_at: datetime | None = None,
        external_user_id: str | None = None,
        user_email: str | None = None,
    ) -> ApiKey:
        """
        Create a new active key.

        Args:
            owner: Owner label, must be a non-empty string
            description: Optional description
            rate_limit: Optional custom limits (missing fields use defaults)
            expires_at: Optional expiry
            external_user_id: Identity the key is provisioned for
            user_email: Email recorded at registration

        Returns:
            The stored ApiKey

        Raises:
            ValidationError: If owner is missing or not a string
        """
        if not isinstance(owner, str) or not owner.strip():
            raise ValidationError(
                message="Owner is required and must be a string",
                errors=[
                    {
                        "field": "owner",
                        "message": "Owner is required and must be a string",
                        "type": "string_type",
                    }
                ],
            )

        requests_per_hour = settings.default_requests_per_hour
        requests_per_day = settings.default_requests_per_day
        if rate_limit is not None:
            if rate_limit.requests_per_hour is not None:
                requests_per_hour = rate_limit.requests_per_hour
            if rate_limit.requests_per_day is not None:
                requests_per_day = rate_limit.requests_per_day

        api_key = ApiKey(
            key=generate_api_key(),
            owner=owner,
            description=description or "",
            status=ApiKeyStatus.ACTIVE,
            usage_count=0,
            requests_per_hour=requests_per_hour,
            requests_per_day=requests_per_day,
            expires_at=expires_at,
            external_user_id=external_user_id,
            user_email=user_email,
            created_at=utcnow(),
        )
        await self.repository.create(api_key)

        logger.info(
            "API key created",
            extra={"context": {"owner": owner, "external_user_id": external_user_id}},
        )
        return api_key

    async def register_user(self, external_user_id: str, email: str) -> tuple[ApiKey, bool]:
        """
        Provision the single key of an external user, idempotently.

        Args:
            external_user_id: Identity provider user id
            email: User email (becomes the owner)

        Returns:
            Tuple of (key, created) where created is False when the user
            already had a key

        Raises:
            ValidationError: If userId or email is missing
        """
        errors = []
        if not isinstance(external_user_id, str) or not external_user_id.strip():
            errors.append(
                {"field": "userId", "message": "Field is required", "type": "missing"}
            )
        if not isinstance(email, str) or not email.strip():
            errors.append(
                {"field": "email", "message": "Field is required", "type": "missing"}
            )
        if errors:
            raise ValidationError(
                message="userId and email are required", errors=errors
            )

        existing = await self.repository.get_by_external_user(external_user_id)
        if existing:
            return existing, False

        api_key = await self.create(
            owner=email,
            description=f"Auto-generated for {email}",
            external_user_id=external_user_id,
            user_email=email,
        )
        return api_key, True

    async def get(self, key: str) -> ApiKey:
        """
        Fetch a key.

        Raises:
            NotFoundError: If the key does not exist
        """
        api_key = await self.repository.get_by_key(key)
        if api_key is None:
            raise NotFoundError(message="API key not found")
        return api_key

    async def find_by_key(self, key: str) -> ApiKey | None:
        """Fetch a key, None when absent."""
        return await self.repository.get_by_key(key)

    async def find_by_external_user(self, external_user_id: str) -> ApiKey | None:
        """Fetch the key of an external user, None when absent."""
        return await self.repository.get_by_external_user(external_user_id)

    async def list_keys(
        self,
        status: str | None = None,
        owner: str | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[ApiKey], PaginationMetadata]:
        """
        List keys newest first with pagination.

        Args:
            status: Optional status filter
            owner: Optional owner filter
            page: 1-based page
            limit: Page size

        Returns:
            Tuple of (page of keys, pagination metadata)
        """
        keys = await self.repository.list_keys(status=status, owner=owner)
        return paginate(keys, page, limit)

    async def update(self, key: str, request: UpdateApiKeyRequest) -> ApiKey:
        """
        Apply only the fields present in the request.

        An unknown status value is ignored; the other fields still apply.

        Raises:
            NotFoundError: If the key does not exist
        """
        provided = request.model_fields_set
        changes: dict[str, Any] = {}

        if "description" in provided and request.description is not None:
            changes["description"] = request.description
        if "status" in provided:
            if request.status in VALID_STATUSES:
                changes["status"] = request.status
            else:
                logger.warning(
                    "Ignoring invalid status in key update",
                    extra={"context": {"status": request.status}},
                )
        if "rate_limit" in provided and request.rate_limit is not None:
            if request.rate_limit.requests_per_hour is not None:
                changes["requests_per_hour"] = request.rate_limit.requests_per_hour
            if request.rate_limit.requests_per_day is not None:
                changes["requests_per_day"] = request.rate_limit.requests_per_day
        if "expires_at" in provided:
            changes["expires_at"] = request.expires_at

        updated = await self.repository.update(key, changes)
        if updated is None:
            raise NotFoundError(message="API key not found")
        return updated

    async def revoke(self, key: str, permanent: bool = False) -> ApiKey | None:
        """
        Revoke (soft) or permanently delete a key.

        Args:
            key: Key string
            permanent: Delete the row instead of setting status=revoked

        Returns:
            The revoked key, or None after a permanent delete

        Raises:
            NotFoundError: If the key does not exist
        """
        if permanent:
            if not await self.repository.delete(key):
                raise NotFoundError(message="API key not found")
            logger.info("API key permanently deleted")
            return None

        revoked = await self.repository.update(
            key, {"status": ApiKeyStatus.REVOKED.value}
        )
        if revoked is None:
            raise NotFoundError(message="API key not found")
        logger.info("API key revoked")
        return revoked

    @staticmethod
    def is_valid(api_key: ApiKey, now: datetime | None = None) -> bool:
        """Validity rule: active and not expired."""
        return is_valid(api_key, now)

    async def increment_usage(self, key: str) -> ApiKey | None:
        """Atomically count one successful ingest for the key."""
        return await self.repository.increment_usage(key)

    async def stats(
        self,
        key: str,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> ApiKeyStats:
        """
        Usage statistics of one key over an optional date range.

        Raises:
            NotFoundError: If the key does not exist
        """
        api_key = await self.get(key)
        events = await self.request_repository.find(
            MetricsFilter(api_key=key, start_date=start_date, end_date=end_date)
        )

        return ApiKeyStats(
            api_key=KeyMetadata(
                key=api_key.key,
                owner=api_key.owner,
                status=api_key.status,
                usage_count=api_key.usage_count,
                last_used_at=api_key.last_used_at,
                created_at=api_key.created_at,
            ),
            statistics=summarize_key_usage(events),
        )
