"""FastAPI dependencies for admin authentication."""

import hmac

from fastapi import Header

from devmetrics.config import settings
from devmetrics.exceptions import AuthenticationError, AuthorizationError


async def require_admin_key(
    x_admin_key: str | None = Header(None, alias="X-Admin-Key"),
) -> None:
    """
    Require the configured admin credential on management and analytics routes.

    Args:
        x_admin_key: Raw X-Admin-Key header value

    Raises:
        AuthenticationError: If the header is missing (401)
        AuthorizationError: If the header does not match (403)
    """
    if not x_admin_key:
        raise AuthenticationError(
            message="Admin authentication required",
            details={"hint": "Include 'X-Admin-Key: <admin_key>'"},
        )

    expected = settings.admin_key
    if expected is None or not hmac.compare_digest(
        x_admin_key.encode("utf-8"), expected.encode("utf-8")
    ):
        raise AuthorizationError()
