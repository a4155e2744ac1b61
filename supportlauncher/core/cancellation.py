"""Cooperative cancellation scope.

One root token is created at application start and cancelled once when the
window closes. Each background task receives its own child token; cancelling
a parent cancels every descendant, cancelling a child leaves the parent alone.
"""

import threading

from supportlauncher.core.exceptions import Cancelled


class CancellationToken:
    """Thread-safe cancellation flag with derived child scopes."""

    def __init__(self, parent: 'CancellationToken | None' = None):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._children: list[CancellationToken] = []
        if parent is not None:
            parent._adopt(self)

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self):
        """Cancel this scope and all scopes derived from it. Idempotent."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            children = list(self._children)
            self._children.clear()
        for child in children:
            child.cancel()

    def child(self) -> 'CancellationToken':
        return CancellationToken(parent=self)

    def raise_if_cancelled(self):
        if self._event.is_set():
            raise Cancelled()

    def sleep(self, seconds: float):
        """Wait for `seconds`, waking immediately on cancel (raises Cancelled)."""
        if self._event.wait(max(0.0, seconds)):
            raise Cancelled()

    def _adopt(self, child: 'CancellationToken'):
        with self._lock:
            if not self._event.is_set():
                self._children.append(child)
                return
        child.cancel()
