"""Request event model for DynamoDB."""

from datetime import datetime

from pydantic import BaseModel, Field


class RequestEvent(BaseModel):
    """
    One reported API call outcome. Immutable once persisted.

    Attributes:
        id: Unique identifier (UUID v4)
        api_key: Key string of the reporting ApiKey (denormalized, no join)
        endpoint: Called path
        method: Upper-cased HTTP method
        status: HTTP status code (100-599)
        response_time: Latency in milliseconds
        timestamp: Event time
    """

    model_config = {"frozen": True}

    id: str = Field(..., description="Event identifier (UUID)")
    api_key: str = Field(..., description="Owning API key")
    endpoint: str = Field(..., min_length=1, description="Called endpoint")
    method: str = Field(..., description="HTTP method (upper case)")
    status: int = Field(..., ge=100, le=599, description="HTTP status code")
    response_time: float = Field(..., ge=0, description="Latency in ms")
    timestamp: datetime = Field(..., description="Event time")
