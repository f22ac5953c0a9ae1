"""Shared response fragments."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PaginationInfo(BaseModel):
    """Page metadata returned alongside paginated lists."""

    current_page: int = Field(..., description="1-based page number that was returned.")
    total_pages: int = Field(..., description="Number of pages for the current filters.")
    total_items: int = Field(..., description="Number of rows matching the filters.")
    items_per_page: int = Field(..., description="Requested page size.")
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> "PaginationInfo":
        total_pages = -(-total // limit) if total else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_items=total,
            items_per_page=limit,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )
