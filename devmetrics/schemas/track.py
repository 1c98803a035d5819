"""Pydantic schemas for the ingestion endpoint."""

from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field, StrictInt, StrictStr, field_validator

from devmetrics.schemas.common import CamelModel

ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD")


class TrackRequest(CamelModel):
    """
    Request schema for reporting one API call.

    Every field is validated independently so a bad payload reports all of
    its violations at once.

    Attributes:
        api_key: Reporting API key (may also come from the X-API-Key header)
        endpoint: Called path
        method: HTTP method, normalized to upper case
        status: HTTP status code in [100, 599]
        response_time: Finite, non-negative latency in milliseconds
        timestamp: Optional event time (defaults to ingest time)
    """

    api_key: Optional[StrictStr] = Field(None, description="API key")
    endpoint: StrictStr = Field(..., min_length=1, description="Called endpoint")
    method: StrictStr = Field(..., min_length=1, description="HTTP method")
    # Strict numbers: no coercion from strings or booleans, no Infinity or NaN
    status: StrictInt = Field(..., ge=100, le=599, description="HTTP status code")
    response_time: float = Field(
        ..., ge=0, strict=True, allow_inf_nan=False, description="Latency in ms"
    )
    timestamp: Optional[datetime] = Field(None, description="Event time")

    @field_validator("endpoint", "api_key")
    @classmethod
    def reject_blank(cls, v: Optional[str]) -> Optional[str]:
        """Reject whitespace-only strings."""
        if v is not None and not v.strip():
            raise ValueError("must be a non-empty string")
        return v

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        """
        Upper-case the method and check it against the allowed set.

        Raises:
            ValueError: If the method is not a known HTTP method
        """
        method = v.strip().upper()
        if method not in ALLOWED_METHODS:
            raise ValueError(f"must be one of {', '.join(ALLOWED_METHODS)}")
        return method

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "apiKey": "dm_3f7a...",
                "endpoint": "/api/users",
                "method": "GET",
                "status": 200,
                "responseTime": 123,
                "timestamp": "2025-11-11T12:00:00Z",
            }
        }
    )


class TrackResponse(CamelModel):
    """Response schema for an accepted event."""

    success: bool = Field(default=True, description="Always true on 201")
    id: str = Field(..., description="Identifier of the stored event")
    message: str = Field(
        default="Request tracked successfully", description="Human-readable message"
    )
