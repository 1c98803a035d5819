"""API route for request event ingestion."""

from fastapi import APIRouter, Header, Request, status

from devmetrics.schemas.track import TrackRequest, TrackResponse
from devmetrics.services.ingestion_service import IngestionService

router = APIRouter(tags=["Tracking"])


@router.post(
    "/track",
    response_model=TrackResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {
            "description": "Request event stored",
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "id": "550e8400-e29b-41d4-a716-446655440000",
                        "message": "Request tracked successfully",
                    }
                }
            },
        },
        400: {
            "description": "Validation error (every failing field is listed)",
            "content": {
                "application/json": {
                    "example": {
                        "success": False,
                        "error_code": "VALIDATION_ERROR",
                        "message": "status: Input should be less than or equal to 599",
                        "errors": [
                            {
                                "field": "status",
                                "message": "Input should be less than or equal to 599",
                                "type": "less_than_equal",
                            }
                        ],
                    }
                }
            },
        },
        401: {
            "description": "Missing, unknown, inactive or expired API key",
            "content": {
                "application/json": {
                    "example": {
                        "success": False,
                        "error_code": "UNAUTHORIZED",
                        "message": "Invalid API key",
                    }
                }
            },
        },
        413: {"description": "Payload too large"},
        429: {
            "description": "Rate limit exceeded",
            "content": {
                "application/json": {
                    "example": {
                        "success": False,
                        "error_code": "RATE_LIMIT_EXCEEDED",
                        "message": "Rate limit exceeded",
                        "details": {
                            "limit": 10000,
                            "window": "hour",
                            "resetAt": "2025-11-11T13:00:00.000000Z",
                            "retry_after": 3600,
                        },
                    }
                }
            },
        },
        500: {"description": "Event could not be stored"},
    },
)
async def track(
    request: Request,
    track_request: TrackRequest,
    x_api_key: str | None = Header(None, alias="X-API-Key"),
) -> TrackResponse:
    """
    Record one API call made by a monitored service.

    The API key is read from the body (``apiKey``) or, when absent, from the
    ``X-API-Key`` header.

    Args:
        request: FastAPI request object
        track_request: Validated event payload
        x_api_key: Optional API key header

    Returns:
        TrackResponse with the stored event id

    Raises:
        AuthenticationError: If the key is missing, unknown or invalid (401)
        RateLimitError: If the key's hourly or daily quota is used up (429)
        StorageError: If the event could not be stored (500)
    """
    request.state.api_key = track_request.api_key or x_api_key

    service = IngestionService()
    event = await service.ingest(track_request, api_key=x_api_key)

    return TrackResponse(id=event.id)
