"""Cooperative cancellation for fetch-and-build operations."""
from __future__ import annotations

import threading
from typing import Optional

from feedkeeper.errors import OperationCancelled


class CancellationToken:
    """Thread-safe flag checked between network reads and entry builds.

    A token created with a ``parent`` also reports cancellation of the parent,
    while cancelling the child leaves the parent untouched.
    """

    def __init__(self, parent: Optional["CancellationToken"] = None) -> None:
        self._event = threading.Event()
        self._parent = parent

    def cancel(self) -> None:
        self._event.set()

    def child(self) -> "CancellationToken":
        return CancellationToken(parent=self)

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise OperationCancelled("Operation was cancelled")


__all__ = ["CancellationToken"]
