"""
Pagination over a filtered result list.

``paginate()`` is the pure slicing function. ``ResultView`` carries the page
state the UI keeps between interactions: a new query always goes back to
page 1, and requests for a page outside the valid range leave the current
page unchanged.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, Sequence, TypeVar, Union

from utils.config import KnownValues

T = TypeVar("T")

PageSizeChoice = Union[int, str]


@dataclass
class Page(Generic[T]):
    items: list[T]
    page: int
    page_size: int
    total: int
    total_pages: int

    @property
    def first_index(self) -> int:
        """1-based index of the first item on this page (0 when empty)."""
        return (self.page - 1) * self.page_size + 1 if self.items else 0

    @property
    def last_index(self) -> int:
        return min(self.page * self.page_size, self.total) if self.items else 0

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def total_pages(count: int, page_size: int) -> int:
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    return math.ceil(count / page_size) if count else 0


def paginate(matches: Sequence[T], page: int, page_size: int) -> Page[T]:
    """Slice *matches* into the 1-indexed *page* of size *page_size*."""
    pages = total_pages(len(matches), page_size)
    start = (page - 1) * page_size
    items = list(matches[start:start + page_size]) if page >= 1 else []
    return Page(items=items, page=page, page_size=page_size,
                total=len(matches), total_pages=pages)


def resolve_page_size(choice: PageSizeChoice, match_count: int) -> int:
    """Turn a page size menu entry into a concrete size.

    "all" becomes the current number of matches (at least 1), fixed at the
    moment it is chosen.

    Raises:
        ValueError: if *choice* is not on the menu.
    """
    if choice == "all":
        return max(1, match_count)
    if not KnownValues.is_page_size_choice(str(choice)):
        raise ValueError(
            f"page_size must be one of {list(KnownValues.PAGE_SIZE_CHOICES)} or 'all'"
        )
    return int(choice)


@dataclass
class ResultView(Generic[T]):
    """Query, page and page size for one result listing."""

    matches: list[T] = field(default_factory=list)
    query: str = ""
    page: int = 1
    page_size: int = KnownValues.DEFAULT_PAGE_SIZE

    @property
    def total_pages(self) -> int:
        return total_pages(len(self.matches), self.page_size)

    def set_query(self, query: str, matches: list[T]) -> None:
        """Install a new query and its matches; always resets to page 1."""
        self.query = query
        self.matches = matches
        self.page = 1

    def set_page_size(self, choice: PageSizeChoice) -> None:
        self.page_size = resolve_page_size(choice, len(self.matches))
        self.page = 1

    def go_to(self, page: int) -> bool:
        """Move to *page* if it exists; returns False (no change) otherwise."""
        if 1 <= page <= self.total_pages:
            self.page = page
            return True
        return False

    def current(self) -> Page[T]:
        return paginate(self.matches, self.page, self.page_size)
