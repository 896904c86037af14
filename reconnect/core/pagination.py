"""
Pagination View

Derives a page window from an already filtered record set.
The caller owns the page index; nothing here clamps it.
"""

import math
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 6


@dataclass(frozen=True)
class Page(Generic[T]):
    """One window of a result set."""
    items: list[T]
    total_pages: int
    page_index: int

    @property
    def has_previous(self) -> bool:
        return self.page_index > 1

    @property
    def has_next(self) -> bool:
        return self.page_index < self.total_pages

    @property
    def indicator(self) -> str:
        return f"Page {self.page_index} of {self.total_pages}"


def total_pages(count: int, page_size: int) -> int:
    """Number of pages for count items. Never less than 1."""
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")
    return max(1, math.ceil(count / page_size))


def paginate(records: Sequence[T], page_index: int, page_size: int) -> Page[T]:
    """
    Slice out page `page_index` (1-based) of `records`.

    An out-of-range page index yields an empty page; it is not clamped.

    Raises:
        ValueError: If page_size is not positive
    """
    pages = total_pages(len(records), page_size)

    if page_index < 1:
        return Page(items=[], total_pages=pages, page_index=page_index)

    start = (page_index - 1) * page_size
    return Page(
        items=list(records[start:start + page_size]),
        total_pages=pages,
        page_index=page_index,
    )
