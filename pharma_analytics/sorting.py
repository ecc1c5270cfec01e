# pharma_analytics/sorting.py
"""
Generic sort + paginate for ordered tables.

One utility shared by every table consumer (laboratories, products,
pharmacies): callers pass the sort key, direction and page. Rows whose key
is None always sort last, whatever the direction.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Sequence, TypeVar

from .errors import ValidationError

T = TypeVar('T')

DEFAULT_PAGE_SIZE = 25


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T]
    page: int
    page_size: int
    total_items: int
    total_pages: int

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


def sort_items(
    items: Sequence[T],
    key: Callable[[T], Any],
    descending: bool = False
) -> List[T]:
    """Stable sort by key; None keys last."""
    present = [item for item in items if key(item) is not None]
    missing = [item for item in items if key(item) is None]
    return sorted(present, key=key, reverse=descending) + missing


def sort_and_paginate(
    items: Sequence[T],
    key: Callable[[T], Any] = None,
    descending: bool = False,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE
) -> Page[T]:
    """
    Sort items and return one page.

    Args:
        items: Rows to display
        key: Sort key; None keeps the input order
        descending: Sort direction
        page: 1-based page number
        page_size: Rows per page

    Raises:
        ValidationError: page or page_size below 1
    """
    if page < 1:
        raise ValidationError(f"Page must be >= 1 (got {page})")
    if page_size < 1:
        raise ValidationError(f"Page size must be >= 1 (got {page_size})")

    ordered = sort_items(items, key, descending) if key is not None else list(items)

    total_items = len(ordered)
    offset = (page - 1) * page_size

    return Page(
        items=ordered[offset:offset + page_size],
        page=page,
        page_size=page_size,
        total_items=total_items,
        total_pages=math.ceil(total_items / page_size) if total_items else 0,
    )
