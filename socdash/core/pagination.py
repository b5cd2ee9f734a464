# socdash/core/pagination.py
"""
Pagination parameters and response envelope shared by list endpoints
"""
from math import ceil
from typing import TypeVar, Generic, List, Optional

from fastapi import Query
from pydantic import BaseModel

from socdash.core.config import settings

T = TypeVar('T')


def clamp_page_size(limit: int) -> int:
    """Bound page sizes to [1, MAX_PAGE_SIZE] instead of rejecting them"""
    return max(1, min(limit, settings.MAX_PAGE_SIZE))


class PaginationParams:
    """page/limit query parameters; oversized limits are clamped"""

    def __init__(
            self,
            page: int = Query(1, ge=1, description="Page number (1-indexed)"),
            limit: Optional[int] = Query(None, ge=1, description="Items per page")
    ):
        self.page = page
        self.limit = clamp_page_size(limit or settings.DEFAULT_PAGE_SIZE)


class PaginatedResponse(BaseModel, Generic[T]):
    """Envelope returned by every list endpoint"""
    items: List[T]
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, items: List[T], total: int, page: int, limit: int) -> "PaginatedResponse[T]":
        return cls(
            items=items,
            page=page,
            limit=limit,
            total=total,
            pages=ceil(total / limit) if total > 0 else 0
        )
