"""Reusable pagination and sorting for list endpoints backed by the in-memory store."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from fastapi import Query
from pydantic import BaseModel

T = TypeVar("T")


class PaginationParams:
    """Inject as a FastAPI dependency for any list endpoint."""

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number"),
        page_size: int = Query(20, ge=1, le=100, description="Items per page"),
        sort_by: str | None = Query(None, description="Field to sort by"),
        sort_order: str = Query("desc", pattern="^(asc|desc)$", description="asc or desc"),
        search: str | None = Query(None, description="Free-text search"),
    ):
        self.page = page
        self.page_size = page_size
        self.sort_by = sort_by
        self.sort_order = sort_order
        self.search = search

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class PaginatedResponse(BaseModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int
    total_pages: int


def paginate(items: Sequence[Any], params: PaginationParams) -> tuple[list[Any], int]:
    """Sort and slice an already-filtered sequence, returning (page_items, total_count)."""
    rows = list(items)
    total = len(rows)

    if params.sort_by and rows and hasattr(rows[0], params.sort_by):
        key = params.sort_by
        present = [r for r in rows if getattr(r, key) is not None]
        missing = [r for r in rows if getattr(r, key) is None]
        present.sort(key=lambda r: getattr(r, key), reverse=params.sort_order == "desc")
        rows = present + missing

    return rows[params.offset:params.offset + params.page_size], total


def total_pages(total: int, page_size: int) -> int:
    return (total + page_size - 1) // page_size
