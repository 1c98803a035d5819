"""Middleware components for request processing."""

from devmetrics.middleware.logging import LoggingMiddleware
from devmetrics.middleware.rate_limit import RateLimiter
from devmetrics.middleware.request_validation import RequestSizeValidationMiddleware

__all__ = [
    "LoggingMiddleware",
    "RateLimiter",
    "RequestSizeValidationMiddleware",
]
