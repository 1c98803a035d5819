"""API key management routes (admin only)."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from devmetrics.auth.dependencies import require_admin_key
from devmetrics.config import settings
from devmetrics.schemas.api_key import (
    ApiKeyEnvelope,
    ApiKeyListResponse,
    ApiKeyResponse,
    ApiKeyStatsResponse,
    CreateApiKeyRequest,
    UpdateApiKeyRequest,
)
from devmetrics.services.api_key_service import ApiKeyService

router = APIRouter(
    prefix="/apikey",
    tags=["API Keys"],
    dependencies=[Depends(require_admin_key)],
    responses={
        401: {"description": "Missing X-Admin-Key header"},
        403: {"description": "Invalid admin credentials"},
    },
)


@router.post(
    "",
    response_model=ApiKeyEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {
            "description": "API key created",
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "message": "API key created successfully",
                        "data": {
                            "key": "dm_3f7a...",
                            "owner": "billing-service",
                            "description": "",
                            "status": "active",
                            "usageCount": 0,
                            "rateLimit": {
                                "requestsPerHour": 10000,
                                "requestsPerDay": 100000,
                            },
                            "createdAt": "2025-11-11T12:00:00Z",
                        },
                    }
                }
            },
        },
        400: {"description": "Owner missing or not a string"},
    },
)
async def create_api_key(body: CreateApiKeyRequest) -> ApiKeyEnvelope:
    """
    Issue a new API key.

    Args:
        body: Owner, optional description, limits and expiry

    Returns:
        ApiKeyEnvelope with the new key (the only time it is shown in full
        to an operator who did not choose it)
    """
    service = ApiKeyService()
    api_key = await service.create(
        owner=body.owner,
        description=body.description,
        rate_limit=body.rate_limit,
        expires_at=body.expires_at,
    )
    return ApiKeyEnvelope(
        message="API key created successfully",
        data=ApiKeyResponse.from_model(api_key),
    )


@router.get("", response_model=ApiKeyListResponse)
async def list_api_keys(
    status_filter: str | None = Query(None, alias="status", description="Key status"),
    owner: str | None = Query(None, description="Owner label"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_limit, ge=1, le=settings.max_page_limit),
) -> ApiKeyListResponse:
    """
    List keys, newest first.

    Returns:
        ApiKeyListResponse with one page of keys and pagination
    """
    service = ApiKeyService()
    keys, pagination = await service.list_keys(
        status=status_filter, owner=owner, page=page, limit=limit
    )
    return ApiKeyListResponse(
        data=[ApiKeyResponse.from_model(key) for key in keys],
        pagination=pagination,
    )


@router.get(
    "/{key}",
    response_model=ApiKeyEnvelope,
    responses={404: {"description": "API key not found"}},
)
async def get_api_key(key: str) -> ApiKeyEnvelope:
    """
    Fetch one key.

    Raises:
        NotFoundError: If the key does not exist (404)
    """
    service = ApiKeyService()
    api_key = await service.get(key)
    return ApiKeyEnvelope(data=ApiKeyResponse.from_model(api_key))


@router.put(
    "/{key}",
    response_model=ApiKeyEnvelope,
    responses={404: {"description": "API key not found"}},
)
async def update_api_key(key: str, body: UpdateApiKeyRequest) -> ApiKeyEnvelope:
    """
    Partially update a key.

    Only fields present in the body change. An unknown status value is
    ignored while the other fields still apply.

    Raises:
        NotFoundError: If the key does not exist (404)
    """
    service = ApiKeyService()
    api_key = await service.update(key, body)
    return ApiKeyEnvelope(
        message="API key updated successfully",
        data=ApiKeyResponse.from_model(api_key),
    )


@router.delete(
    "/{key}",
    response_model=ApiKeyEnvelope,
    responses={404: {"description": "API key not found"}},
)
async def revoke_api_key(
    key: str,
    permanent: bool = Query(False, description="Delete instead of revoking"),
) -> ApiKeyEnvelope:
    """
    Revoke a key, or delete it when ``permanent=true``.

    Raises:
        NotFoundError: If the key does not exist (404)
    """
    service = ApiKeyService()
    revoked = await service.revoke(key, permanent=permanent)

    if revoked is None:
        return ApiKeyEnvelope(message="API key permanently deleted")
    return ApiKeyEnvelope(
        message="API key revoked successfully",
        data=ApiKeyResponse.from_model(revoked),
    )


@router.get(
    "/{key}/stats",
    response_model=ApiKeyStatsResponse,
    responses={404: {"description": "API key not found"}},
)
async def get_api_key_stats(
    key: str,
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
) -> ApiKeyStatsResponse:
    """
    Usage statistics of one key over an optional date range.

    Raises:
        NotFoundError: If the key does not exist (404)
    """
    service = ApiKeyService()
    stats = await service.stats(key, start_date=start_date, end_date=end_date)
    return ApiKeyStatsResponse(data=stats)
