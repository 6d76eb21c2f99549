"""
Shared schemas: pagination metadata and paged result containers.
"""

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Pagination(BaseModel):
    """Pagination metadata returned alongside every list."""
    current_page: int
    total_pages: int
    total_items: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, page: int, page_size: int, total_items: int) -> "Pagination":
        total_pages = math.ceil(total_items / page_size) if page_size else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_items=total_items,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


class Page(BaseModel, Generic[T]):
    """One page of results."""
    items: list[T] = Field(default_factory=list)
    pagination: Pagination


def page_offset(page: int, page_size: int) -> int:
    """Row offset for a 1-based page number."""
    return (page - 1) * page_size
