"""In-memory search history."""

from __future__ import annotations

from typing import List, Protocol


class HistoryProvider(Protocol):
    def add_to_history(self, term: str) -> None: ...


class SearchHistory:
    """Most recent search terms, newest last, without repeats."""

    def __init__(self, max_items: int = 50) -> None:
        self.max_items = max_items
        self._items: List[str] = []

    def add_to_history(self, term: str) -> None:
        term = term.strip()
        if not term:
            return
        if term in self._items:
            self._items.remove(term)
        self._items.append(term)
        del self._items[: -self.max_items]

    @property
    def items(self) -> List[str]:
        return list(self._items)
