"""Global exception handlers for consistent error responses.

Every error body has the shape ``{success: false, error_code, message}``
plus ``details``, ``errors`` (validation), ``error`` (non-production
detail) and ``correlation_id`` when available.
"""

from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from devmetrics.config import settings
from devmetrics.exceptions import (
    MetricsAPIError,
    RateLimitError,
    StorageError,
    ValidationError,
)
from devmetrics.logging.config import get_logger

logger = get_logger(__name__)


def create_error_response(
    error_code: str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
    correlation_id: str | None = None,
    errors: list[dict[str, Any]] | None = None,
    error: str | None = None,
    extra: dict[str, Any] | None = None,
) -> JSONResponse:
    """
    Create standardized error response.

    Args:
        error_code: Machine-readable error code
        message: Human-readable error message
        status_code: HTTP status code
        details: Additional error details
        correlation_id: Request correlation ID for tracing
        errors: Per-field validation failures
        error: Underlying error text (only outside production)
        extra: Additional top-level keys

    Returns:
        JSONResponse with error information
    """
    content: dict[str, Any] = {
        "success": False,
        "error_code": error_code,
        "message": message,
    }
    if details:
        content["details"] = details
    if errors is not None:
        content["errors"] = errors
    if error is not None:
        content["error"] = error
    if extra:
        content.update(extra)
    if correlation_id:
        content["correlation_id"] = correlation_id

    return JSONResponse(status_code=status_code, content=content)


def _error_detail(exc: BaseException | None) -> str | None:
    """Exception text for clients, suppressed in production."""
    if exc is None or settings.is_production:
        return None
    return f"{type(exc).__name__}: {exc}"


async def metrics_api_exception_handler(
    request: Request, exc: MetricsAPIError
) -> JSONResponse:
    """
    Handle MetricsAPIError and its subclasses.

    Args:
        request: FastAPI request
        exc: MetricsAPIError instance

    Returns:
        JSONResponse with error details
    """
    correlation_id = getattr(request.state, "correlation_id", None)

    errors = exc.errors if isinstance(exc, ValidationError) else None
    error = None
    if isinstance(exc, StorageError):
        logger.error(
            "Storage failure",
            exc_info=exc.cause or exc,
            extra={
                "correlation_id": correlation_id,
                "context": {"path": request.url.path},
            },
        )
        error = _error_detail(exc.cause)

    response = create_error_response(
        error_code=exc.error_code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        correlation_id=correlation_id,
        errors=errors,
        error=error,
    )

    if isinstance(exc, RateLimitError):
        response.headers["Retry-After"] = str(exc.retry_after)

    return response


def format_validation_errors(raw_errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Flatten pydantic error dicts into ``{field, message, type}`` entries.

    The ``body`` / ``query`` location prefix is dropped so fields read as
    the client sent them.
    """
    formatted = []
    for error in raw_errors:
        field_parts = [
            str(loc) for loc in error.get("loc", ()) if loc not in ("body", "query", "path")
        ]
        field = ".".join(field_parts) if field_parts else "request"

        msg = error.get("msg", "Invalid value")
        error_type = error.get("type", "value_error")
        if error_type == "missing":
            msg = "Field is required"
        elif error_type == "value_error":
            msg = msg.removeprefix("Value error, ")

        formatted.append({"field": field, "message": msg, "type": error_type})
    return formatted


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request validation errors from FastAPI.

    Every failing field is listed, not just the first one.

    Args:
        request: FastAPI request
        exc: RequestValidationError from Pydantic

    Returns:
        JSONResponse (400) with validation error details
    """
    correlation_id = getattr(request.state, "correlation_id", None)
    errors = format_validation_errors(exc.errors())

    summary = "Validation failed"
    if errors:
        summary = f"{errors[0]['field']}: {errors[0]['message']}"
        if len(errors) > 1:
            summary += f" (and {len(errors) - 1} more errors)"

    return create_error_response(
        error_code="VALIDATION_ERROR",
        message=summary,
        status_code=status.HTTP_400_BAD_REQUEST,
        correlation_id=correlation_id,
        errors=errors,
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """
    Handle routing-level HTTP errors (unknown paths, wrong methods).

    Args:
        request: FastAPI request
        exc: Starlette HTTPException

    Returns:
        JSONResponse in the standard error shape
    """
    correlation_id = getattr(request.state, "correlation_id", None)

    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return create_error_response(
            error_code="NOT_FOUND",
            message="Endpoint not found",
            status_code=exc.status_code,
            correlation_id=correlation_id,
            extra={"path": request.url.path},
        )

    return create_error_response(
        error_code="HTTP_ERROR",
        message=str(exc.detail),
        status_code=exc.status_code,
        correlation_id=correlation_id,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Logs the full traceback and returns a generic 500. The exception text
    is included only outside production.

    Args:
        request: FastAPI request
        exc: Any unhandled exception

    Returns:
        JSONResponse with generic error message
    """
    correlation_id = getattr(request.state, "correlation_id", None)

    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {exc}",
        exc_info=exc,
        extra={
            "correlation_id": correlation_id,
            "context": {
                "exception_type": type(exc).__name__,
                "method": request.method,
                "path": request.url.path,
            },
        },
    )

    return create_error_response(
        error_code="INTERNAL_ERROR",
        message="Internal server error",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        correlation_id=correlation_id,
        error=_error_detail(exc),
    )
