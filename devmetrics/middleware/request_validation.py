"""Request validation middleware."""

import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from devmetrics.config import settings
from devmetrics.exceptions import RequestTooLargeError
from devmetrics.handlers.exception_handler import create_error_response


class RequestSizeValidationMiddleware(BaseHTTPMiddleware):
    """
    Middleware to validate request size before processing.

    Prevents large requests from consuming resources during parsing.
    Returns 413 Payload Too Large for oversized requests.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Validate request size and process request.

        Args:
            request: The incoming request
            call_next: The next middleware/handler in the chain

        Returns:
            The response from the handler, or a 413 error response
        """
        # LoggingMiddleware runs first and may already have assigned one
        correlation_id = getattr(request.state, "correlation_id", None) or request.headers.get(
            "X-Request-ID", str(uuid.uuid4())
        )
        request.state.correlation_id = correlation_id

        content_length = request.headers.get("content-length")

        if content_length and content_length.isdigit():
            size = int(content_length)
            max_size = settings.max_request_size_bytes

            if size > max_size:
                size_kb = size / 1024
                max_kb = max_size / 1024
                exc = RequestTooLargeError(
                    message=f"Request size {size_kb:.1f}KB exceeds maximum {max_kb:.0f}KB",
                    max_size=f"{max_kb:.0f}KB",
                    details={"request_size": f"{size_kb:.1f}KB"},
                )
                # Raised errors never reach the app's handlers from here
                return create_error_response(
                    error_code=exc.error_code,
                    message=exc.message,
                    status_code=exc.status_code,
                    details=exc.details,
                    correlation_id=correlation_id,
                )

        return await call_next(request)
