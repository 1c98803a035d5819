"""Tests for API key generation, validity and the admin dependency."""

import re
from datetime import timedelta

import pytest

from devmetrics.auth.api_key import generate_api_key, is_valid, mask_api_key
from devmetrics.auth.dependencies import require_admin_key
from devmetrics.config import settings
from devmetrics.exceptions import AuthenticationError, AuthorizationError


class TestGenerateApiKey:
    """Tests for generate_api_key."""

    def test_format_is_prefix_and_64_hex(self) -> None:
        """Test the dm_ prefix followed by 64 hex characters."""
        assert re.fullmatch(r"dm_[0-9a-f]{64}", generate_api_key())

    def test_generates_unique_keys(self) -> None:
        """Test that consecutive calls generate different keys."""
        assert len({generate_api_key() for _ in range(50)}) == 50


class TestIsValid:
    """Tests for the validity rule."""

    def test_active_without_expiry_is_valid(self, make_api_key, now) -> None:
        assert is_valid(make_api_key(), now)

    @pytest.mark.parametrize("status", ["inactive", "revoked"])
    def test_non_active_status_is_invalid(self, make_api_key, now, status) -> None:
        assert not is_valid(make_api_key(status=status), now)

    def test_expired_key_is_invalid(self, make_api_key, now) -> None:
        api_key = make_api_key(expires_at=now - timedelta(seconds=1))
        assert not is_valid(api_key, now)

    def test_future_expiry_is_valid(self, make_api_key, now) -> None:
        api_key = make_api_key(expires_at=now + timedelta(days=1))
        assert is_valid(api_key, now)

    def test_revoked_and_unexpired_is_invalid(self, make_api_key, now) -> None:
        api_key = make_api_key(status="revoked", expires_at=now + timedelta(days=1))
        assert not is_valid(api_key, now)


def test_mask_api_key_keeps_prefix_only(valid_key) -> None:
    """Test that logs only ever see the first characters."""
    masked = mask_api_key(valid_key)

    assert masked == valid_key[:10] + "..."
    assert mask_api_key(None) is None


class TestRequireAdminKey:
    """Tests for the admin credential dependency."""

    async def test_missing_header_is_401(self, admin_headers) -> None:
        with pytest.raises(AuthenticationError) as exc_info:
            await require_admin_key(None)
        assert exc_info.value.status_code == 401

    async def test_wrong_key_is_403(self, admin_headers) -> None:
        with pytest.raises(AuthorizationError) as exc_info:
            await require_admin_key("not-the-admin-key")
        assert exc_info.value.status_code == 403

    async def test_unconfigured_admin_key_rejects_everything(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "admin_key", None)
        with pytest.raises(AuthorizationError):
            await require_admin_key("anything")

    async def test_matching_key_passes(self, admin_headers) -> None:
        assert await require_admin_key(admin_headers["X-Admin-Key"]) is None
