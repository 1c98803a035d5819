"""Custom exception classes for the DevMetrics API."""

from datetime import datetime
from typing import Any


class MetricsAPIError(Exception):
    """Base exception for the DevMetrics API."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code
            error_code: Machine-readable error code
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}


class ValidationError(MetricsAPIError):
    """Raised when input is malformed or missing (400).

    Always carries the full list of violations, never just the first one.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        errors: list[dict[str, Any]] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize ValidationError.

        Args:
            message: Error message
            errors: One entry per failing field ({field, message, type})
            details: Additional error details
        """
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details=details,
        )
        self.errors = errors or []


class AuthenticationError(MetricsAPIError):
    """Raised when an API key or credential is missing or invalid (401)."""

    def __init__(
        self,
        message: str = "Invalid API key",
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize AuthenticationError.

        Args:
            message: Error message
            details: Additional error details
        """
        super().__init__(
            message=message,
            status_code=401,
            error_code="UNAUTHORIZED",
            details=details,
        )


class AuthorizationError(MetricsAPIError):
    """Raised when the admin credential is wrong (403)."""

    def __init__(
        self,
        message: str = "Invalid admin credentials",
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize AuthorizationError.

        Args:
            message: Error message
            details: Additional error details
        """
        super().__init__(
            message=message,
            status_code=403,
            error_code="FORBIDDEN",
            details=details,
        )


class NotFoundError(MetricsAPIError):
    """Raised when a referenced key or resource does not exist (404)."""

    def __init__(
        self,
        message: str = "Resource not found",
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize NotFoundError.

        Args:
            message: Error message
            details: Additional error details
        """
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND",
            details=details,
        )


class RateLimitError(MetricsAPIError):
    """Raised when an API key exceeds its quota (429)."""

    def __init__(
        self,
        limit: int,
        reset_at: datetime,
        window: str = "hour",
        retry_after: int = 3600,
        message: str | None = None,
    ) -> None:
        """
        Initialize RateLimitError.

        Args:
            limit: Configured ceiling for the exhausted window
            reset_at: Advisory time at which capacity should reopen
            window: Name of the exhausted window ("hour" or "day")
            retry_after: Seconds until reset_at
            message: Error message (derived from limit and window if omitted)
        """
        super().__init__(
            message=message or f"Rate limit exceeded: {limit} requests/{window}",
            status_code=429,
            error_code="RATE_LIMIT_EXCEEDED",
            details={
                "limit": limit,
                "window": window,
                "resetAt": reset_at.isoformat(),
                "retry_after": retry_after,
            },
        )
        self.limit = limit
        self.reset_at = reset_at
        self.window = window
        self.retry_after = retry_after


class RequestTooLargeError(MetricsAPIError):
    """Raised when request payload exceeds size limit (413)."""

    def __init__(
        self,
        message: str = "Request payload too large",
        max_size: str = "64KB",
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize RequestTooLargeError.

        Args:
            message: Error message
            max_size: Maximum allowed size
            details: Additional error details
        """
        error_details = details or {}
        error_details["max_size"] = max_size
        super().__init__(
            message=message,
            status_code=413,
            error_code="PAYLOAD_TOO_LARGE",
            details=error_details,
        )


class StorageError(MetricsAPIError):
    """Raised on transient or unexpected store failures (500)."""

    def __init__(
        self,
        message: str = "Storage operation failed",
        cause: Exception | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize StorageError.

        Args:
            message: Error message
            cause: Underlying store exception (shown only outside production)
            details: Additional error details
        """
        super().__init__(
            message=message,
            status_code=500,
            error_code="STORAGE_ERROR",
            details=details,
        )
        self.cause = cause
