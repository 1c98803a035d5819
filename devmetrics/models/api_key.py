"""API Key model for DynamoDB."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ApiKeyStatus(str, Enum):
    """Lifecycle states of an API key. Only ``active`` keys authenticate."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    REVOKED = "revoked"


class ApiKey(BaseModel):
    """
    API Key model for ingestion authentication and quotas.

    Attributes:
        key: Opaque secret token (``dm_`` + 64 hex chars), partition key
        owner: Label or identity the key is administratively tied to
        description: Free text
        status: Key status (active, inactive, revoked)
        usage_count: Successful ingests attributed to this key
        requests_per_hour: Hourly admission ceiling
        requests_per_day: Daily admission ceiling
        last_used_at: Time of the most recent successful ingest
        expires_at: Optional expiry; None means no expiry
        external_user_id: Identity this key was provisioned for at registration
        user_email: Email supplied at registration
        created_at: Creation time
    """

    model_config = ConfigDict(use_enum_values=True)

    key: str = Field(..., description="Secret API key")
    owner: str = Field(..., min_length=1, description="Key owner")
    description: str = Field(default="", description="Human-readable description")
    status: ApiKeyStatus = Field(
        default=ApiKeyStatus.ACTIVE,
        validate_default=True,
        description="Key status: active, inactive, revoked",
    )
    usage_count: int = Field(default=0, ge=0, description="Successful ingests")
    requests_per_hour: int = Field(default=10_000, ge=0, description="Hourly limit")
    requests_per_day: int = Field(default=100_000, ge=0, description="Daily limit")
    last_used_at: Optional[datetime] = Field(None, description="Last successful ingest")
    expires_at: Optional[datetime] = Field(None, description="Expiry (None = never)")
    external_user_id: Optional[str] = Field(
        None, description="External identity the key was provisioned for"
    )
    user_email: Optional[str] = Field(None, description="Registered user email")
    created_at: datetime = Field(..., description="Creation timestamp")
