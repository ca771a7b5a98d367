from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from shop_console.table.columns import Row


@dataclass(frozen=True)
class Page:
    rows: list[Row]
    page: int
    page_size: int
    total: int
    total_pages: int

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def start_index(self) -> int:
        if self.total == 0:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def end_index(self) -> int:
        return min(self.page * self.page_size, self.total)

    def summary(self) -> str:
        return f"Showing {self.start_index} to {self.end_index} of {self.total} results"


def count_pages(total: int, page_size: int) -> int:
    if page_size <= 0:
        raise ValueError(f"page_size must be greater than 0, got {page_size}")
    return max(1, math.ceil(total / page_size))


def clamp_page(page: int, total_pages: int) -> int:
    return min(max(1, page), max(1, total_pages))


def paginate(rows: Sequence[Row], page: int, page_size: int) -> Page:
    total = len(rows)
    total_pages = count_pages(total, page_size)
    current = clamp_page(page, total_pages)
    start = (current - 1) * page_size
    return Page(
        rows=list(rows[start : start + page_size]),
        page=current,
        page_size=page_size,
        total=total,
        total_pages=total_pages,
    )


def single_page(rows: Sequence[Row]) -> Page:
    """Every row on one page, for tables with pagination turned off."""
    return Page(rows=list(rows), page=1, page_size=max(1, len(rows)), total=len(rows), total_pages=1)
