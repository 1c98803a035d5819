"""Repository layer for DynamoDB operations."""

from devmetrics.repositories.api_key_repository import ApiKeyRepository
from devmetrics.repositories.request_repository import RequestRepository

__all__ = ["ApiKeyRepository", "RequestRepository"]
