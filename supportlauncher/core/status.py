"""Single-slot status channel between background workers and the window.

Workers on any thread write into one slot; the window owns presentation and
reads the slot on its own thread. The writer side hands a notification to a
marshal callable (for the Qt window, a queued signal emit). While one
notification is still pending, later writes only overwrite the slot, so a
burst of progress updates costs the GUI thread a single repaint.
"""

import logging
import threading
from dataclasses import replace
from typing import Callable

from supportlauncher.core.models import StatusSnapshot

logger = logging.getLogger(__name__)


class StatusSink:
    """Thread-safe current status text + progress."""

    def __init__(self, notify: Callable[[], None] | None = None):
        self._lock = threading.Lock()
        self._snapshot = StatusSnapshot()
        self._pending = False
        self._notify = notify

    def bind(self, notify: Callable[[], None] | None):
        """Attach (or detach with None) the owner-thread notifier."""
        with self._lock:
            self._notify = notify
            self._pending = False

    def snapshot(self) -> StatusSnapshot:
        with self._lock:
            return self._snapshot

    def take(self) -> StatusSnapshot:
        """Consumer side: read the latest snapshot and re-arm notification."""
        with self._lock:
            self._pending = False
            return self._snapshot

    # ── Writers ──────────────────────────────────────────────────────

    def set_status(self, text: str | None):
        self._publish(text=text or "")

    def set_progress(self, percent: int):
        self._publish(progress=max(0, min(int(percent), 100)), busy=False)

    def set_busy(self):
        self._publish(busy=True, progress=None)

    def hide_progress(self):
        self._publish(progress=None, busy=False)

    def clear(self):
        self._publish(text="", progress=None, busy=False)

    def _publish(self, **changes):
        with self._lock:
            self._snapshot = replace(self._snapshot, **changes)
            notify = self._notify
            if notify is None or self._pending:
                return
            self._pending = True

        try:
            notify()
        except Exception as e:
            # presentation already torn down
            with self._lock:
                self._pending = False
            logger.debug("Status notification dropped: %s", e)
