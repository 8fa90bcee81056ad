from __future__ import annotations

from dataclasses import dataclass
from math import ceil
from typing import Generic, Optional, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @classmethod
    def build(
        cls,
        page: Optional[int],
        limit: Optional[int],
        *,
        default_limit: int = DEFAULT_PAGE_SIZE,
        max_limit: int = MAX_PAGE_SIZE,
    ) -> "PageRequest":
        page = page if page and page > 0 else 1
        limit = limit if limit and limit > 0 else default_limit
        return cls(page=page, limit=min(limit, max_limit))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    total: int
    request: PageRequest

    @property
    def total_pages(self) -> int:
        return ceil(self.total / self.request.limit) if self.total else 0

    def meta(self) -> dict:
        return {
            "current_page": self.request.page,
            "total_pages": self.total_pages,
            "total_items": self.total,
            "items_per_page": self.request.limit,
        }
