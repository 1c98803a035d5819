"""API Key repository for DynamoDB operations."""

from datetime import datetime
from typing import Any, Optional

from boto3.dynamodb.conditions import Attr, Key

from devmetrics.config import settings
from devmetrics.models.api_key import ApiKey
from devmetrics.repositories.base import BaseRepository
from devmetrics.utils.timestamps import from_iso, to_iso, utcnow

EXTERNAL_USER_INDEX = "ExternalUserIndex"

_TIMESTAMP_FIELDS = ("created_at", "last_used_at", "expires_at")
_NUMBER_FIELDS = ("usage_count", "requests_per_hour", "requests_per_day")


class ApiKeyRepository(BaseRepository):
    """
    Repository for API Key operations in DynamoDB.

    The partition key is the key string itself so authentication is a
    single GetItem. Usage counting is an atomic ``ADD`` update.
    """

    def __init__(self) -> None:
        """Initialize ApiKeyRepository with api_keys table."""
        super().__init__(settings.dynamodb_table_api_keys)

    @staticmethod
    def _serialize(api_key: ApiKey) -> dict[str, Any]:
        """Convert an ApiKey to a DynamoDB item, omitting None values."""
        item = api_key.model_dump(exclude_none=True)
        for field in _TIMESTAMP_FIELDS:
            if field in item:
                item[field] = to_iso(item[field])
        return item

    @staticmethod
    def _deserialize(item: dict[str, Any]) -> ApiKey:
        """Convert a DynamoDB item (Decimals, ISO strings) to an ApiKey."""
        data = dict(item)
        for field in _NUMBER_FIELDS:
            if field in data:
                data[field] = int(data[field])
        for field in _TIMESTAMP_FIELDS:
            if data.get(field):
                data[field] = from_iso(data[field])
        return ApiKey(**data)

    async def create(self, api_key: ApiKey) -> ApiKey:
        """
        Store a new API key.

        The write is conditional on the key string being unused.

        Args:
            api_key: ApiKey model to store

        Returns:
            The created ApiKey
        """
        await self.put_item(
            self._serialize(api_key), condition=Attr("key").not_exists()
        )
        return api_key

    async def get_by_key(self, key: str) -> Optional[ApiKey]:
        """
        Get API key by its key string.

        Args:
            key: Secret key string

        Returns:
            ApiKey if found, None otherwise
        """
        item = await self.get_item({"key": key})
        if item:
            return self._deserialize(item)
        return None

    async def get_by_external_user(self, external_user_id: str) -> Optional[ApiKey]:
        """
        Get the key provisioned for an external user identity.

        Args:
            external_user_id: Identity provider user id

        Returns:
            The first matching ApiKey, None if the user has no key
        """
        items = await self.query_all(
            IndexName=EXTERNAL_USER_INDEX,
            KeyConditionExpression=Key("external_user_id").eq(external_user_id),
        )
        if not items:
            return None
        oldest = min(items, key=lambda item: item.get("created_at", ""))
        return self._deserialize(oldest)

    async def list_keys(
        self, status: Optional[str] = None, owner: Optional[str] = None
    ) -> list[ApiKey]:
        """
        List keys matching optional status/owner filters.

        Args:
            status: Only keys in this status
            owner: Only keys with this owner

        Returns:
            Matching keys ordered by creation time, newest first
        """
        condition = None
        if status:
            condition = Attr("status").eq(status)
        if owner:
            owner_condition = Attr("owner").eq(owner)
            condition = owner_condition if condition is None else condition & owner_condition

        params: dict[str, Any] = {}
        if condition is not None:
            params["FilterExpression"] = condition

        items = await self.scan_all(**params)
        keys = [self._deserialize(item) for item in items]
        keys.sort(key=lambda api_key: api_key.created_at, reverse=True)
        return keys

    async def update(self, key: str, changes: dict[str, Any]) -> Optional[ApiKey]:
        """
        Apply a partial update to an existing key.

        A None value removes the attribute (used to clear ``expires_at``).

        Args:
            key: Key string to update
            changes: Attribute name to new value

        Returns:
            Updated ApiKey, None if the key does not exist
        """
        names = {"#key": "key"}
        values: dict[str, Any] = {}
        set_parts = []
        remove_parts = []

        for index, (field, value) in enumerate(sorted(changes.items())):
            placeholder = f"#f{index}"
            names[placeholder] = field
            if value is None:
                remove_parts.append(placeholder)
                continue
            if isinstance(value, datetime):
                value = to_iso(value)
            values[f":v{index}"] = value
            set_parts.append(f"{placeholder} = :v{index}")

        if not set_parts and not remove_parts:
            return await self.get_by_key(key)

        clauses = []
        if set_parts:
            clauses.append("SET " + ", ".join(set_parts))
        if remove_parts:
            clauses.append("REMOVE " + ", ".join(remove_parts))

        attributes = await self.update_item(
            {"key": key},
            " ".join(clauses),
            expression_values=values,
            expression_names=names,
            condition_expression="attribute_exists(#key)",
        )
        if attributes is None:
            return None
        return self._deserialize(attributes)

    async def delete(self, key: str) -> bool:
        """
        Permanently delete a key.

        Args:
            key: Key string to delete

        Returns:
            True if a key was deleted, False if it did not exist
        """
        deleted = await self.delete_item(
            {"key": key}, condition=Attr("key").exists()
        )
        return deleted is not None

    async def increment_usage(self, key: str) -> Optional[ApiKey]:
        """
        Atomically add one to usage_count and stamp last_used_at.

        Args:
            key: Key string that ingested an event

        Returns:
            Updated ApiKey, None if the key no longer exists
        """
        attributes = await self.update_item(
            {"key": key},
            "ADD usage_count :one SET last_used_at = :now",
            expression_values={":one": 1, ":now": to_iso(utcnow())},
            expression_names={"#key": "key"},
            condition_expression="attribute_exists(#key)",
        )
        if attributes is None:
            return None
        return self._deserialize(attributes)
