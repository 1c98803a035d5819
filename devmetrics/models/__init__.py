"""Data models for the DevMetrics API."""

from devmetrics.models.api_key import ApiKey, ApiKeyStatus
from devmetrics.models.request_event import RequestEvent

__all__ = ["ApiKey", "ApiKeyStatus", "RequestEvent"]
