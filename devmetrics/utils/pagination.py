"""Offset pagination over fully materialized result lists."""

import math
from typing import Sequence, TypeVar

from devmetrics.schemas.common import PaginationMetadata

T = TypeVar("T")


def page_count(total: int, limit: int) -> int:
    """Number of pages needed for ``total`` items (ceil(total / limit))."""
    if limit <= 0:
        return 0
    return math.ceil(total / limit)


def paginate(
    items: Sequence[T], page: int, limit: int
) -> tuple[list[T], PaginationMetadata]:
    """
    Slice one page out of an ordered sequence.

    Pages beyond the last one yield an empty list with unchanged metadata.

    Args:
        items: Ordered items to page through
        page: 1-based page number
        limit: Page size

    Returns:
        Tuple of (page items, pagination metadata)
    """
    page = max(1, page)
    total = len(items)
    start = (page - 1) * limit
    data = list(items[start : start + limit])

    return data, PaginationMetadata(
        page=page,
        limit=limit,
        total=total,
        pages=page_count(total, limit),
    )
