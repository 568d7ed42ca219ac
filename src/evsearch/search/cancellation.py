"""Cooperative cancellation for background fetches."""

from __future__ import annotations

import threading

from evsearch.errors import OperationCancelled


class CancellationToken:
    """Flag shared between the caller that starts a fetch and the worker running it."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled()
