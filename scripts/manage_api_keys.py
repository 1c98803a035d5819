#!/usr/bin/env python3
"""
CLI for API Key Management.

Provides commands to generate, list, revoke, delete, and update the rate
limits of API keys directly against the store.
"""

import argparse
import asyncio
import sys
from datetime import datetime
from typing import Optional

from devmetrics.config import settings
from devmetrics.exceptions import NotFoundError
from devmetrics.models.api_key import ApiKeyStatus
from devmetrics.schemas.api_key import RateLimitUpdate, UpdateApiKeyRequest
from devmetrics.services.api_key_service import ApiKeyService


async def cmd_generate(
    owner: str,
    description: Optional[str],
    requests_per_hour: int,
    requests_per_day: int,
    expires_at: Optional[datetime] = None,
) -> None:
    """
    Generate a new API key and store it.

    Args:
        owner: Owner label for the key
        description: Human-readable description for the key
        requests_per_hour: Hourly ceiling
        requests_per_day: Daily ceiling
        expires_at: Optional expiry
    """
    service = ApiKeyService()
    api_key = await service.create(
        owner=owner,
        description=description,
        rate_limit=RateLimitUpdate(
            requests_per_hour=requests_per_hour, requests_per_day=requests_per_day
        ),
        expires_at=expires_at,
    )

    print("✓ API Key created successfully")
    print(f"\nAPI Key: {api_key.key}")
    print(f"\nOwner: {api_key.owner}")
    print(f"Description: {api_key.description or 'None'}")
    print(
        f"Rate Limit: {api_key.requests_per_hour} requests/hour,"
        f" {api_key.requests_per_day} requests/day"
    )
    print(f"Expires: {api_key.expires_at.isoformat() if api_key.expires_at else 'never'}")
    print(f"Status: {api_key.status}")


async def cmd_list(status: Optional[str] = None, owner: Optional[str] = None) -> None:
    """
    List API keys, newest first.

    Args:
        status: Optional status filter
        owner: Optional owner filter
    """
    service = ApiKeyService()
    keys, pagination = await service.list_keys(
        status=status, owner=owner, page=1, limit=settings.max_page_limit
    )

    if not keys:
        print("No API keys found.")
        return

    print(
        f"\n{'Key':<16} {'Owner':<24} {'Status':<10} {'Usage':>8}"
        f" {'Per hour':>10} {'Per day':>10} {'Created':<20}"
    )
    print("-" * 104)

    for api_key in keys:
        owner_label = api_key.owner
        if len(owner_label) > 21:
            owner_label = owner_label[:21] + "..."
        print(
            f"{api_key.key[:13] + '...':<16} {owner_label:<24} {api_key.status:<10}"
            f" {api_key.usage_count:>8} {api_key.requests_per_hour:>10}"
            f" {api_key.requests_per_day:>10}"
            f" {api_key.created_at.strftime('%Y-%m-%d %H:%M'):<20}"
        )

    print(f"\nTotal: {pagination.total} API keys")


async def cmd_revoke(key: str) -> None:
    """
    Revoke an API key by setting its status to revoked.

    Args:
        key: The key to revoke
    """
    service = ApiKeyService()

    api_key = await service.find_by_key(key)
    if api_key is None:
        print("✗ Error: API key not found")
        sys.exit(1)

    if api_key.status == ApiKeyStatus.REVOKED:
        print("⚠️  API key is already revoked")
        return

    await service.revoke(key)
    print("✓ API key has been revoked")


async def cmd_delete(key: str) -> None:
    """
    Permanently delete an API key.

    Args:
        key: The key to delete
    """
    service = ApiKeyService()
    try:
        await service.revoke(key, permanent=True)
    except NotFoundError:
        print("✗ Error: API key not found")
        sys.exit(1)

    print("✓ API key has been permanently deleted")


async def cmd_update_rate_limit(
    key: str,
    requests_per_hour: Optional[int],
    requests_per_day: Optional[int],
) -> None:
    """
    Update the rate limits of an API key.

    Args:
        key: The key to update
        requests_per_hour: New hourly ceiling (unchanged if None)
        requests_per_day: New daily ceiling (unchanged if None)
    """
    if requests_per_hour is None and requests_per_day is None:
        print("✗ Error: pass --per-hour and/or --per-day")
        sys.exit(1)

    service = ApiKeyService()
    try:
        api_key = await service.update(
            key,
            UpdateApiKeyRequest(
                rate_limit=RateLimitUpdate(
                    requests_per_hour=requests_per_hour,
                    requests_per_day=requests_per_day,
                )
            ),
        )
    except NotFoundError:
        print("✗ Error: API key not found")
        sys.exit(1)

    print(
        f"✓ Rate limit updated to {api_key.requests_per_hour} requests/hour,"
        f" {api_key.requests_per_day} requests/day"
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per operation."""
    parser = argparse.ArgumentParser(
        description="Manage API keys for the DevMetrics API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")

    generate_parser = subparsers.add_parser("generate", help="Generate a new API key")
    generate_parser.add_argument("--owner", type=str, required=True, help="Key owner")
    generate_parser.add_argument(
        "--description", type=str, help="Human-readable description for the key"
    )
    generate_parser.add_argument(
        "--per-hour",
        type=int,
        default=settings.default_requests_per_hour,
        help=f"Hourly limit (default: {settings.default_requests_per_hour})",
    )
    generate_parser.add_argument(
        "--per-day",
        type=int,
        default=settings.default_requests_per_day,
        help=f"Daily limit (default: {settings.default_requests_per_day})",
    )
    generate_parser.add_argument(
        "--expires-at",
        type=datetime.fromisoformat,
        help="Expiry as ISO 8601 (e.g. 2026-01-01T00:00:00+00:00)",
    )

    list_parser = subparsers.add_parser("list", help="List API keys")
    list_parser.add_argument(
        "--status", choices=[status.value for status in ApiKeyStatus]
    )
    list_parser.add_argument("--owner", type=str)

    revoke_parser = subparsers.add_parser("revoke", help="Revoke an API key")
    revoke_parser.add_argument("key", type=str, help="Key to revoke")

    delete_parser = subparsers.add_parser("delete", help="Permanently delete an API key")
    delete_parser.add_argument("key", type=str, help="Key to delete")

    update_parser = subparsers.add_parser(
        "update-rate-limit", help="Update API key rate limits"
    )
    update_parser.add_argument("key", type=str, help="Key to update")
    update_parser.add_argument("--per-hour", type=int, help="New hourly limit")
    update_parser.add_argument("--per-day", type=int, help="New daily limit")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "generate":
        asyncio.run(
            cmd_generate(
                args.owner,
                args.description,
                args.per_hour,
                args.per_day,
                args.expires_at,
            )
        )
    elif args.command == "list":
        asyncio.run(cmd_list(args.status, args.owner))
    elif args.command == "revoke":
        asyncio.run(cmd_revoke(args.key))
    elif args.command == "delete":
        asyncio.run(cmd_delete(args.key))
    elif args.command == "update-rate-limit":
        asyncio.run(cmd_update_rate_limit(args.key, args.per_hour, args.per_day))


if __name__ == "__main__":
    main()
