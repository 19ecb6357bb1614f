# core/pager.py

from typing import Generic, List, Optional, Sequence, TypeVar

from .config import settings

T = TypeVar("T")

class Pager(Generic[T]):
    """Fixed-size pages over an already filtered list. Navigation clamps at both ends."""

    def __init__(self, page_size: Optional[int] = None, items: Sequence[T] = ()):
        self.page_size = page_size or settings.visits_page_size
        if self.page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._items: List[T] = list(items)
        self.index = 0

    def set_items(self, items: Sequence[T]):
        """Replaces the item set and goes back to the first page."""
        self._items = list(items)
        self.index = 0

    def reset(self):
        self.index = 0

    @property
    def total(self) -> int:
        return len(self._items)

    @property
    def page_count(self) -> int:
        return max(1, -(-len(self._items) // self.page_size))

    @property
    def items(self) -> List[T]:
        start = self.index * self.page_size
        return self._items[start:start + self.page_size]

    @property
    def has_next(self) -> bool:
        return (self.index + 1) * self.page_size < len(self._items)

    @property
    def has_prev(self) -> bool:
        return self.index > 0

    def next(self) -> bool:
        if not self.has_next:
            return False
        self.index += 1
        return True

    def prev(self) -> bool:
        if not self.has_prev:
            return False
        self.index -= 1
        return True
