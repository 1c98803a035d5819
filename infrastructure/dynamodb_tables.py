"""DynamoDB table definitions and a script to create them (LocalStack or AWS)."""

import asyncio
from typing import Any

import aioboto3
from botocore.exceptions import ClientError

from devmetrics.config import settings
from devmetrics.repositories.api_key_repository import EXTERNAL_USER_INDEX
from devmetrics.repositories.base import get_dynamodb_config
from devmetrics.repositories.request_repository import (
    API_KEY_TIMESTAMP_INDEX,
    ENDPOINT_TIMESTAMP_INDEX,
    STATUS_TIMESTAMP_INDEX,
)


def _timestamp_index(index_name: str, hash_key: str) -> dict[str, Any]:
    """GSI keyed by ``hash_key`` and sorted by ISO timestamp."""
    return {
        "IndexName": index_name,
        "KeySchema": [
            {"AttributeName": hash_key, "KeyType": "HASH"},
            {"AttributeName": "timestamp", "KeyType": "RANGE"},
        ],
        "Projection": {"ProjectionType": "ALL"},
    }


def api_keys_table_definition(table_name: str) -> dict[str, Any]:
    """
    API keys table: one item per key, looked up by the key string.

    Args:
        table_name: Name of the API keys table

    Returns:
        create_table keyword arguments
    """
    return {
        "TableName": table_name,
        "KeySchema": [{"AttributeName": "key", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "key", "AttributeType": "S"},
            {"AttributeName": "external_user_id", "AttributeType": "S"},
        ],
        "GlobalSecondaryIndexes": [
            {
                "IndexName": EXTERNAL_USER_INDEX,
                "KeySchema": [{"AttributeName": "external_user_id", "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            }
        ],
        "BillingMode": "PAY_PER_REQUEST",
    }


def requests_table_definition(table_name: str) -> dict[str, Any]:
    """
    Requests table: append-only events with one timestamp-sorted index per
    filter dimension.

    Args:
        table_name: Name of the requests table

    Returns:
        create_table keyword arguments
    """
    return {
        "TableName": table_name,
        "KeySchema": [{"AttributeName": "id", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "id", "AttributeType": "S"},
            {"AttributeName": "api_key", "AttributeType": "S"},
            {"AttributeName": "endpoint", "AttributeType": "S"},
            {"AttributeName": "status", "AttributeType": "N"},
            {"AttributeName": "timestamp", "AttributeType": "S"},
        ],
        "GlobalSecondaryIndexes": [
            _timestamp_index(API_KEY_TIMESTAMP_INDEX, "api_key"),
            _timestamp_index(ENDPOINT_TIMESTAMP_INDEX, "endpoint"),
            _timestamp_index(STATUS_TIMESTAMP_INDEX, "status"),
        ],
        "BillingMode": "PAY_PER_REQUEST",
    }


async def create_table(dynamodb: Any, definition: dict[str, Any]) -> bool:
    """
    Create one table and wait until it exists.

    Args:
        dynamodb: aioboto3 DynamoDB resource
        definition: create_table keyword arguments

    Returns:
        True if created, False if it already existed
    """
    table_name = definition["TableName"]
    try:
        table = await dynamodb.create_table(**definition)
        await table.wait_until_exists()
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceInUseException":
            print(f"→ Table already exists: {table_name}")
            return False
        raise

    print(f"✓ Created table: {table_name}")
    return True


async def main() -> None:
    """Create all required DynamoDB tables."""
    print("Creating DynamoDB tables...")
    print(f"Region: {settings.aws_region}")
    print(f"Endpoint: {settings.dynamodb_endpoint_url or 'AWS'}")
    print()

    session = aioboto3.Session()
    async with session.resource("dynamodb", **get_dynamodb_config()) as dynamodb:
        await create_table(
            dynamodb, api_keys_table_definition(settings.dynamodb_table_api_keys)
        )
        await create_table(
            dynamodb, requests_table_definition(settings.dynamodb_table_requests)
        )

    print()
    print("✓ All tables ready")


if __name__ == "__main__":
    asyncio.run(main())
