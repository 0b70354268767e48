from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence


@dataclass(frozen=True)
class Page:
    items: List[Any]
    page: int
    page_size: int
    total_count: int

    @property
    def total_pages(self) -> int:
        return max(1, (self.total_count + self.page_size - 1) // self.page_size)


def parse_page(value: Optional[Any]) -> int:
    """Read a 1-based page number from a query argument, defaulting to 1."""
    try:
        page = int(value)
    except (TypeError, ValueError):
        return 1
    return max(page, 1)


def paginate(items: Sequence[Any], page: int, page_size: int) -> Page:
    """Slice ``items`` into one page; out-of-range pages clamp to the last page."""
    page_size = max(int(page_size), 1)
    total_count = len(items)
    last_page = max(1, (total_count + page_size - 1) // page_size)
    page = min(max(page, 1), last_page)
    offset = (page - 1) * page_size
    return Page(
        items=list(items[offset:offset + page_size]),
        page=page,
        page_size=page_size,
        total_count=total_count,
    )
