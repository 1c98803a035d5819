"""Self-service key provisioning for identity-provider users."""

from fastapi import APIRouter, Response, status

from devmetrics.exceptions import NotFoundError
from devmetrics.schemas.api_key import (
    RateLimit,
    RegisteredKey,
    RegisterRequest,
    RegisterResponse,
    UserApiKey,
    UserApiKeyResponse,
)
from devmetrics.services.api_key_service import ApiKeyService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        200: {"description": "User already registered, existing key returned"},
        201: {"description": "Key provisioned for a new user"},
        400: {"description": "userId or email missing"},
    },
)
async def register(body: RegisterRequest, response: Response) -> RegisterResponse:
    """
    Provision the API key of an external user.

    Calling this twice for the same ``userId`` returns the same key.

    Args:
        body: External user id and email
        response: Outgoing response (status switched to 200 for repeats)

    Returns:
        RegisterResponse with the user's key
    """
    service = ApiKeyService()
    api_key, created = await service.register_user(body.user_id, body.email)

    if not created:
        response.status_code = status.HTTP_200_OK
        message = "User already registered"
    else:
        message = "API key generated successfully"

    return RegisterResponse(
        message=message,
        data=RegisteredKey(key=api_key.key, created_at=api_key.created_at),
    )


@router.get(
    "/api-key/{user_id}",
    response_model=UserApiKeyResponse,
    responses={404: {"description": "No key for this user"}},
)
async def get_user_api_key(user_id: str) -> UserApiKeyResponse:
    """
    Look up the key provisioned for an external user.

    Raises:
        NotFoundError: If the user has no key (404)
    """
    service = ApiKeyService()
    api_key = await service.find_by_external_user(user_id)
    if api_key is None:
        raise NotFoundError(message="No API key found for this user")

    return UserApiKeyResponse(
        data=UserApiKey(
            key=api_key.key,
            status=api_key.status,
            usage_count=api_key.usage_count,
            rate_limit=RateLimit(
                requests_per_hour=api_key.requests_per_hour,
                requests_per_day=api_key.requests_per_day,
            ),
            last_used_at=api_key.last_used_at,
            created_at=api_key.created_at,
        )
    )
