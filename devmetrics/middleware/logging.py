"""Request logging middleware with correlation ID support."""

import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from devmetrics.auth.api_key import mask_api_key
from devmetrics.logging.config import get_logger

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Request-ID"


def _get_or_generate_correlation_id(request: Request) -> str:
    """
    Extract or generate a correlation ID for the request.

    Args:
        request: The incoming request

    Returns:
        The correlation ID (from header or newly generated)
    """
    return request.headers.get(CORRELATION_HEADER, str(uuid.uuid4()))


def _request_context(request: Request) -> dict:
    return {
        "method": request.method,
        "path": request.url.path,
        "client_host": request.client.host if request.client else None,
    }


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all HTTP requests and responses.

    - Propagates or assigns a correlation ID (X-Request-ID)
    - Logs start, completion (status, latency) and unhandled failures
    - Logs only a masked prefix of the reporting API key
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process the request and add logging.

        Args:
            request: The incoming request
            call_next: The next middleware/handler in the chain

        Returns:
            The response from the handler
        """
        # Reuse the caller's X-Request-ID or mint one
        correlation_id = _get_or_generate_correlation_id(request)
        request.state.correlation_id = correlation_id

        # Start timing and log the incoming request
        start_time = time.perf_counter()
        logger.info(
            "Request started",
            extra={
                "correlation_id": correlation_id,
                "context": {
                    **_request_context(request),
                    "query_params": dict(request.query_params),
                },
            },
        )

        # Unhandled errors are logged here and re-raised for the handlers
        try:
            response = await call_next(request)
        except Exception as exc:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "Request failed with exception",
                exc_info=exc,
                extra={
                    "correlation_id": correlation_id,
                    "context": {
                        **_request_context(request),
                        "response_time_ms": round(elapsed_ms, 2),
                    },
                },
            )
            raise

        # Completion log carries only the masked key prefix
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Request completed",
            extra={
                "correlation_id": correlation_id,
                "context": {
                    **_request_context(request),
                    "status_code": response.status_code,
                    "response_time_ms": round(elapsed_ms, 2),
                    "api_key": mask_api_key(getattr(request.state, "api_key", None)),
                },
            },
        )

        # Echo the correlation ID to the caller
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
