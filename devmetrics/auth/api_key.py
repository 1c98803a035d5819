"""API key generation and validity rules."""

import secrets
from datetime import datetime

from devmetrics.config import settings
from devmetrics.models.api_key import ApiKey, ApiKeyStatus
from devmetrics.utils.timestamps import ensure_utc, utcnow

KEY_BYTES = 32


def generate_api_key() -> str:
    """
    Generate a new secret API key.

    Returns:
        Prefix followed by 32 random bytes hex-encoded (256 bits)
    """
    return settings.api_key_prefix + secrets.token_hex(KEY_BYTES)


def is_valid(api_key: ApiKey, now: datetime | None = None) -> bool:
    """
    Check whether a key may authenticate right now.

    A key is valid iff it is active and not past its expiry.

    Args:
        api_key: Stored key record
        now: Reference time (defaults to the current UTC time)

    Returns:
        True if the key is valid
    """
    if api_key.status != ApiKeyStatus.ACTIVE:
        return False
    if api_key.expires_at is None:
        return True
    now = now or utcnow()
    return ensure_utc(api_key.expires_at) >= ensure_utc(now)


def mask_api_key(api_key: str | None) -> str | None:
    """Shorten a key for logs, keeping only its first characters."""
    if not api_key:
        return None
    return api_key[:10] + "..."
