"""
Pagination Utility

Offset pagination parameters and the ``{data, meta}`` envelope returned by
list endpoints.
"""

from math import ceil
from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


T = TypeVar("T")


class PaginationParams(BaseModel):
    """Pagination parameters for API requests."""

    page: int = Field(default=1, ge=1, description="Page number (starts at 1)")
    limit: int = Field(default=10, ge=1, description="Items per page")

    @property
    def skip(self) -> int:
        """Number of records to skip."""
        return (self.page - 1) * self.limit


class PageMeta(BaseModel):
    """Pagination metadata."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page: int = Field(description="Current page number")
    limit: int = Field(description="Items per page")
    total_items: int = Field(description="Total number of matching items")
    total_pages: int = Field(description="Total number of pages")


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated response wrapper."""

    data: List[T] = Field(description="Items for the current page")
    meta: PageMeta = Field(description="Pagination metadata")


class Paginator:
    """Helpers for building pagination metadata."""

    @staticmethod
    def total_pages(total_items: int, limit: int) -> int:
        return ceil(total_items / limit)

    @staticmethod
    def create_page_meta(total_items: int, page: int, limit: int) -> PageMeta:
        """
        Create PageMeta from raw values.

        Args:
            total_items: Total number of matching items
            page: Current page number
            limit: Items per page

        Returns:
            PageMeta: Pagination metadata
        """
        return PageMeta(
            page=page,
            limit=limit,
            total_items=total_items,
            total_pages=Paginator.total_pages(total_items, limit),
        )
