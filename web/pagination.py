"""Bounded page cursor used by the catalog API paging."""

from typing import Tuple

__all__ = ["PageCursor", "clamp"]


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


class PageCursor:
    """Index over ``item_count`` items shown ``page_size`` at a time.

    The index never leaves ``[0, page_count - 1]``; with no items it stays 0.
    ``next()`` and ``prev()`` stop at the ends instead of wrapping.
    """

    def __init__(self, item_count: int, page_size: int = 1, index: int = 0):
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.item_count = max(int(item_count), 0)
        self.page_size = page_size
        self.index = 0
        self.go(index)

    @property
    def page_count(self) -> int:
        return max(-(-self.item_count // self.page_size), 1)

    @property
    def last_index(self) -> int:
        return self.page_count - 1

    def go(self, index: int) -> int:
        self.index = clamp(int(index), 0, self.last_index)
        return self.index

    def next(self) -> int:
        return self.go(self.index + 1)

    def prev(self) -> int:
        return self.go(self.index - 1)

    @property
    def has_next(self) -> bool:
        return self.index < self.last_index

    @property
    def has_prev(self) -> bool:
        return self.index > 0

    def bounds(self) -> Tuple[int, int]:
        """Slice bounds ``(start, stop)`` of the current page."""
        start = self.index * self.page_size
        return start, min(start + self.page_size, self.item_count)

    def __repr__(self) -> str:
        return f"PageCursor(item_count={self.item_count}, page_size={self.page_size}, index={self.index})"
