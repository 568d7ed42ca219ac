"""Thread-safe result buffer with batched change notification."""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Iterator, List

from evsearch.models import SearchResult

LOGGER = logging.getLogger(__name__)


class BufferEvent(str, Enum):
    COUNT_CHANGED = "count_changed"
    RESET = "reset"


BufferListener = Callable[[BufferEvent], None]


class ResultBuffer:
    """Ordered sequence of :class:`SearchResult` shared by a producer and its readers.

    Mutations made with :meth:`add_silent` and :meth:`clear_silent` are not
    announced; the producer calls :meth:`notify` once a batch is complete so
    listeners see a single structural change per batch.
    """

    def __init__(self, lock: threading.RLock | None = None) -> None:
        self.lock = lock or threading.RLock()
        self._items: List[SearchResult] = []
        self._listeners: List[BufferListener] = []

    def subscribe(self, listener: BufferListener) -> None:
        with self.lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: BufferListener) -> None:
        with self.lock:
            self._listeners.remove(listener)

    def add_silent(self, item: SearchResult) -> None:
        with self.lock:
            self._items.append(item)

    def clear_silent(self) -> None:
        with self.lock:
            self._items.clear()

    def notify(self) -> None:
        """Emit one count update and one reset to every listener.

        Listeners are called without holding :attr:`lock`.
        """
        with self.lock:
            listeners = list(self._listeners)
        for event in (BufferEvent.COUNT_CHANGED, BufferEvent.RESET):
            for listener in listeners:
                listener(event)

    def snapshot(self) -> List[SearchResult]:
        with self.lock:
            return list(self._items)

    def page(self, offset: int = 0, limit: int | None = None) -> List[SearchResult]:
        with self.lock:
            end = None if limit is None else offset + limit
            return self._items[offset:end]

    def __len__(self) -> int:
        with self.lock:
            return len(self._items)

    def __getitem__(self, index: int) -> SearchResult:
        with self.lock:
            return self._items[index]

    def __iter__(self) -> Iterator[SearchResult]:
        return iter(self.snapshot())
