"""Base repository class with common DynamoDB operations."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import aioboto3
from botocore.exceptions import ClientError

from devmetrics.config import settings

logger = logging.getLogger(__name__)


def get_dynamodb_config() -> dict[str, Any]:
    """
    Build DynamoDB resource configuration based on environment.

    With IAM roles only the region is set. For LocalStack or explicit
    credentials the endpoint URL and keys are added.

    Returns:
        Dictionary of aioboto3 resource parameters
    """
    config: dict[str, Any] = {"region_name": settings.aws_region}

    # Only add endpoint_url if explicitly configured (LocalStack)
    if settings.dynamodb_endpoint_url:
        config["endpoint_url"] = settings.dynamodb_endpoint_url

    if settings.aws_access_key_id:
        config["aws_access_key_id"] = settings.aws_access_key_id
    if settings.aws_secret_access_key:
        config["aws_secret_access_key"] = settings.aws_secret_access_key
    # Temporary credentials need the session token as well
    if settings.aws_session_token:
        config["aws_session_token"] = settings.aws_session_token

    logger.debug(
        "DynamoDB config resolved",
        extra={"context": {"config_keys": sorted(config.keys())}},
    )
    return config


def is_conditional_check_failure(exc: ClientError) -> bool:
    """Whether a ClientError is a failed ConditionExpression."""
    return (
        exc.response.get("Error", {}).get("Code")
        == "ConditionalCheckFailedException"
    )


class BaseRepository:
    """
    Base repository providing common DynamoDB operations.

    All repository methods are async and use aioboto3 for
    non-blocking database operations. Multi-page reads follow
    ``LastEvaluatedKey`` until the result set is exhausted.
    """

    def __init__(self, table_name: str) -> None:
        """
        Initialize repository with table name.

        Args:
            table_name: Name of the DynamoDB table
        """
        self.table_name = table_name
        self.session = aioboto3.Session()

    @asynccontextmanager
    async def table(self) -> AsyncIterator[Any]:
        """Yield the aioboto3 Table resource for this repository."""
        async with self.session.resource("dynamodb", **get_dynamodb_config()) as dynamodb:
            yield await dynamodb.Table(self.table_name)

    async def put_item(
        self, item: dict[str, Any], condition: Any | None = None
    ) -> None:
        """
        Put item into DynamoDB table.

        Args:
            item: Dictionary representing the item to store
            condition: Optional ConditionExpression guarding the write
        """
        params: dict[str, Any] = {"Item": item}
        if condition is not None:
            params["ConditionExpression"] = condition

        async with self.table() as table:
            await table.put_item(**params)

    async def get_item(self, key: dict[str, Any]) -> dict[str, Any] | None:
        """
        Get item from DynamoDB table by key.

        Args:
            key: Dictionary with partition key and optionally sort key

        Returns:
            Item dictionary or None if not found
        """
        async with self.table() as table:
            response = await table.get_item(Key=key)
            return response.get("Item")

    async def delete_item(
        self, key: dict[str, Any], condition: Any | None = None
    ) -> dict[str, Any] | None:
        """
        Delete item from DynamoDB table.

        Args:
            key: Dictionary with partition key and optionally sort key
            condition: Optional ConditionExpression guarding the delete

        Returns:
            The deleted item's attributes, None if the condition failed
        """
        params: dict[str, Any] = {"Key": key, "ReturnValues": "ALL_OLD"}
        if condition is not None:
            params["ConditionExpression"] = condition

        async with self.table() as table:
            try:
                response = await table.delete_item(**params)
            except ClientError as exc:
                if is_conditional_check_failure(exc):
                    return None
                raise
            return response.get("Attributes")

    async def update_item(
        self,
        key: dict[str, Any],
        update_expression: str,
        expression_values: dict[str, Any] | None = None,
        expression_names: dict[str, str] | None = None,
        condition_expression: str | None = None,
    ) -> dict[str, Any] | None:
        """
        Update item in DynamoDB table.

        Args:
            key: Dictionary with partition key and optionally sort key
            update_expression: DynamoDB update expression
            expression_values: Values for the update expression
            expression_names: Attribute name mappings for reserved keywords
            condition_expression: Optional guard, e.g. the item must exist

        Returns:
            Updated item attributes, None if the condition failed
        """
        update_params: dict[str, Any] = {
            "Key": key,
            "UpdateExpression": update_expression,
            "ReturnValues": "ALL_NEW",
        }
        if expression_values:
            update_params["ExpressionAttributeValues"] = expression_values
        if expression_names:
            update_params["ExpressionAttributeNames"] = expression_names
        if condition_expression:
            update_params["ConditionExpression"] = condition_expression

        async with self.table() as table:
            try:
                response = await table.update_item(**update_params)
            except ClientError as exc:
                if is_conditional_check_failure(exc):
                    return None
                raise
            return response.get("Attributes", {})

    async def query_all(self, **params: Any) -> list[dict[str, Any]]:
        """
        Run a Query and collect the items of every page.

        Args:
            **params: Query parameters (IndexName, KeyConditionExpression, ...)

        Returns:
            All matching items
        """
        items: list[dict[str, Any]] = []
        async with self.table() as table:
            while True:
                response = await table.query(**params)
                items.extend(response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    return items
                params["ExclusiveStartKey"] = last_key

    async def scan_all(self, **params: Any) -> list[dict[str, Any]]:
        """
        Run a Scan and collect the items of every page.

        Args:
            **params: Scan parameters (FilterExpression, ...)

        Returns:
            All matching items
        """
        items: list[dict[str, Any]] = []
        async with self.table() as table:
            while True:
                response = await table.scan(**params)
                items.extend(response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    return items
                params["ExclusiveStartKey"] = last_key

    async def count(self, **params: Any) -> int:
        """
        Run a COUNT query and sum the counts of every page.

        Args:
            **params: Query parameters

        Returns:
            Number of matching items
        """
        total = 0
        params["Select"] = "COUNT"
        async with self.table() as table:
            while True:
                response = await table.query(**params)
                total += response.get("Count", 0)
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    return total
                params["ExclusiveStartKey"] = last_key

    async def describe(self) -> dict[str, Any]:
        """
        Describe the table, used as a connectivity check.

        Returns:
            Table status and item count estimate
        """
        async with self.table() as table:
            return {
                "table": self.table_name,
                "status": await table.table_status,
            }
