"""Paging helpers for the import preview and results tables."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, List, Sequence, TypeVar

from .models import ImportRecord

PAGE_SIZE = 50

T = TypeVar("T")


def page_count(total: int, page_size: int = PAGE_SIZE) -> int:
    """Number of pages needed for ``total`` items; an empty set still has one page."""

    return max(1, math.ceil(max(total, 0) / page_size))


def clamp_page(page: int, total: int, page_size: int = PAGE_SIZE) -> int:
    """Clamp a requested page into ``[1, page_count(total)]``.

    Stale page numbers (for example after a re-upload with fewer rows) are
    silently clamped rather than rejected.
    """

    return min(max(page, 1), page_count(total, page_size))


@dataclass(slots=True)
class Page(Generic[T]):
    number: int
    page_count: int
    total: int
    items: List[T] = field(default_factory=list)

    @property
    def has_previous(self) -> bool:
        return self.number > 1

    @property
    def has_next(self) -> bool:
        return self.number < self.page_count


class Paginator(Generic[T]):
    """Slices a fixed sequence into pages of :data:`PAGE_SIZE` items."""

    def __init__(self, items: Sequence[T], page_size: int = PAGE_SIZE) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._items = list(items)
        self._page_size = page_size

    @property
    def total(self) -> int:
        return len(self._items)

    @property
    def page_count(self) -> int:
        return page_count(self.total, self._page_size)

    def page(self, number: int) -> Page[T]:
        effective = clamp_page(number, self.total, self._page_size)
        start = (effective - 1) * self._page_size
        return Page(
            number=effective,
            page_count=self.page_count,
            total=self.total,
            items=self._items[start:start + self._page_size],
        )


@dataclass(frozen=True, slots=True)
class PreviewSummary:
    total: int
    valid_count: int
    error_count: int

    @classmethod
    def from_records(cls, records: Sequence[ImportRecord]) -> "PreviewSummary":
        valid = sum(1 for record in records if record.is_valid)
        return cls(total=len(records), valid_count=valid, error_count=len(records) - valid)


__all__ = ["PAGE_SIZE", "Page", "Paginator", "PreviewSummary", "clamp_page", "page_count"]
