"""Pydantic schemas for API key management and registration."""

from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field, StrictStr

from devmetrics.models.api_key import ApiKey
from devmetrics.schemas.common import CamelModel, GroupCount, PaginationMetadata


class RateLimit(CamelModel):
    """Admission ceilings of an API key."""

    requests_per_hour: int = Field(default=10_000, ge=0, description="Hourly limit")
    requests_per_day: int = Field(default=100_000, ge=0, description="Daily limit")


class RateLimitUpdate(CamelModel):
    """Partial rate limit change; omitted fields keep their value."""

    requests_per_hour: Optional[int] = Field(None, ge=0)
    requests_per_day: Optional[int] = Field(None, ge=0)


class CreateApiKeyRequest(CamelModel):
    """Request schema for creating an API key."""

    owner: StrictStr = Field(..., min_length=1, description="Key owner")
    description: Optional[str] = Field(None, description="Description")
    rate_limit: Optional[RateLimitUpdate] = Field(None, description="Custom limits")
    expires_at: Optional[datetime] = Field(None, description="Optional expiry")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "owner": "billing-service",
                "description": "Production key",
                "rateLimit": {"requestsPerHour": 5000, "requestsPerDay": 50000},
                "expiresAt": "2026-01-01T00:00:00Z",
            }
        }
    )


class UpdateApiKeyRequest(CamelModel):
    """
    Partial update of an API key.

    Only fields present in the request body are applied. ``expiresAt: null``
    clears the expiry. Status is a plain string: unknown values are ignored
    rather than rejected.
    """

    description: Optional[str] = None
    status: Optional[str] = None
    rate_limit: Optional[RateLimitUpdate] = None
    expires_at: Optional[datetime] = None


class ApiKeyResponse(CamelModel):
    """Wire representation of an API key."""

    key: str
    owner: str
    description: str
    status: str
    usage_count: int
    rate_limit: RateLimit
    last_used_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    external_user_id: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_model(cls, api_key: ApiKey) -> "ApiKeyResponse":
        """Build the wire shape from a stored ApiKey."""
        return cls(
            key=api_key.key,
            owner=api_key.owner,
            description=api_key.description,
            status=api_key.status,
            usage_count=api_key.usage_count,
            rate_limit=RateLimit(
                requests_per_hour=api_key.requests_per_hour,
                requests_per_day=api_key.requests_per_day,
            ),
            last_used_at=api_key.last_used_at,
            expires_at=api_key.expires_at,
            external_user_id=api_key.external_user_id,
            created_at=api_key.created_at,
        )


class ApiKeyEnvelope(CamelModel):
    """Single-key response body."""

    success: bool = True
    message: Optional[str] = None
    data: Optional[ApiKeyResponse] = None


class ApiKeyListResponse(CamelModel):
    """Paginated key listing."""

    success: bool = True
    data: list[ApiKeyResponse]
    pagination: PaginationMetadata


class KeyMetadata(CamelModel):
    """Key fields reported alongside usage statistics."""

    key: str
    owner: str
    status: str
    usage_count: int
    last_used_at: Optional[datetime] = None
    created_at: datetime


class KeyStatistics(CamelModel):
    """Aggregated usage of one key."""

    total_requests: int
    avg_response_time: float
    success_rate: float
    error_count: int
    top_endpoints: list[GroupCount]


class ApiKeyStats(CamelModel):
    """Per-key stats payload."""

    api_key: KeyMetadata
    statistics: KeyStatistics


class ApiKeyStatsResponse(CamelModel):
    """Per-key stats response body."""

    success: bool = True
    data: ApiKeyStats


class RegisterRequest(CamelModel):
    """Registration of an external user identity."""

    user_id: StrictStr = Field(..., min_length=1, description="External user id")
    email: StrictStr = Field(..., min_length=1, description="User email")


class RegisteredKey(CamelModel):
    """Key handed back at registration."""

    key: str
    created_at: datetime


class RegisterResponse(CamelModel):
    """Registration response body."""

    success: bool = True
    message: str
    data: RegisteredKey


class UserApiKey(CamelModel):
    """Key details shown to the registered user."""

    key: str
    status: str
    usage_count: int
    rate_limit: RateLimit
    last_used_at: Optional[datetime] = None
    created_at: datetime


class UserApiKeyResponse(CamelModel):
    """Response body for a user's key lookup."""

    success: bool = True
    data: UserApiKey
