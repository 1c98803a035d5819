"""Shared schema building blocks."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema serialized with camelCase keys, accepting either case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaginationMetadata(BaseModel):
    """
    Offset pagination metadata.

    Attributes:
        page: Requested page (1-based)
        limit: Page size
        total: Total matching items
        pages: ceil(total / limit)
    """

    page: int = Field(..., description="Current page")
    limit: int = Field(..., description="Page size")
    total: int = Field(..., description="Total matching items")
    pages: int = Field(..., description="Total pages")


class GroupCount(BaseModel):
    """A ``{_id, count}`` group row, the shape the dashboard charts consume."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id", description="Group key")
    count: int = Field(..., description="Rows in the group")
