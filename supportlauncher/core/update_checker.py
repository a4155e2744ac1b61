"""Auto-update system — version check, updater download, elevated handoff.

Architecture:
  UpdaterLauncher — pure Python logic (no Qt dependency), blocking methods
  UpdateWorker    — QThread wrapper with pyqtSignal for thread-safe UI updates

Flow: IDLE → CHECKING → (UP_TO_DATE | STALE) → COUNTING_DOWN → DOWNLOADING
→ LAUNCHING → TERMINATED. FAILED is reachable from any non-terminal state and
leaves the app running the current version. Cancellation aborts silently.
"""

import logging
import os
import threading
from typing import Callable

from packaging.version import Version

from supportlauncher.branding import AppBranding
from supportlauncher.config.settings import AppSettings
from supportlauncher.core.cancellation import CancellationToken
from supportlauncher.core.downloader import download
from supportlauncher.core.exceptions import Cancelled, IoError, NetworkError
from supportlauncher.core.models import UpdateSession, UpdateState
from supportlauncher.core.status import StatusSink
from supportlauncher.core.version_oracle import VersionOracle
from supportlauncher.system.shell import launch_elevated

logger = logging.getLogger(__name__)


class UpdaterLauncher:
    """Runs one update cycle per process lifetime.

    All methods are synchronous (blocking) — designed to run in a QThread.
    `request_exit` must end the current process (for the window: quit the Qt
    event loop); it is called right after the updater has been spawned.
    """

    def __init__(self, settings: AppSettings, status: StatusSink,
                 request_exit: Callable[[], None],
                 current_version: str = AppBranding.VERSION,
                 oracle: VersionOracle | None = None,
                 download_fn: Callable = download,
                 launch: Callable[[str], None] = launch_elevated,
                 on_update_available: Callable[[Version], None] | None = None,
                 on_state: Callable[[UpdateState], None] | None = None):
        self._settings = settings
        self._status = status
        self._request_exit = request_exit
        self._oracle = oracle or VersionOracle(
            settings.version_url, current_version, settings.request_timeout)
        self._download = download_fn
        self._launch = launch
        self._on_update_available = on_update_available
        self._on_state = on_state

        self._lock = threading.Lock()
        self._started = False
        self.state = UpdateState.IDLE
        self.history: list[UpdateState] = [UpdateState.IDLE]
        self.session: UpdateSession | None = None

    # ── Entry point ──────────────────────────────────────────────────

    def run(self, cancel: CancellationToken) -> UpdateState:
        """Run the whole cycle. Never raises; returns the final state."""
        with self._lock:
            if self._started:
                logger.warning("Update check already ran in this process, ignoring")
                return self.state
            self._started = True

        self.session = UpdateSession(cancel=cancel.child(),
                                     destination=self._settings.updater_path)
        try:
            self._check(self.session)
        except Cancelled:
            logger.info("Update flow cancelled in state %s", self.state.value)
            self._enter(UpdateState.CANCELLED)
        except Exception as e:
            logger.exception("Unexpected error in update flow")
            self._fail(f"ERROR checking for update: {e}")
        finally:
            self.session = None
        return self.state

    # ── States ───────────────────────────────────────────────────────

    def _check(self, session: UpdateSession):
        self._enter(UpdateState.CHECKING)
        self._status.set_status("Checking for updates…")

        latest = self._oracle.check(session.cancel)
        if latest is None:
            self._enter(UpdateState.UP_TO_DATE)
            self._status.clear()
            return

        session.latest_version = latest
        self._enter(UpdateState.STALE)
        if self._on_update_available:
            self._on_update_available(latest)

        self._countdown(session)
        self._download_and_launch(session)

    def _countdown(self, session: UpdateSession):
        self._enter(UpdateState.COUNTING_DOWN)
        for remaining in range(self._settings.countdown_steps - 1, -1, -1):
            self._status.set_status(f"Updating in {remaining} s…")
            session.cancel.sleep(self._settings.countdown_tick)

    def _download_and_launch(self, session: UpdateSession):
        self._enter(UpdateState.DOWNLOADING)
        self._status.set_status("Downloading updater…")
        self._status.set_progress(0)

        try:
            self._download(
                self._settings.updater_url,
                session.destination,
                on_progress=self._status.set_progress,
                cancel=session.cancel,
                chunk_size=self._settings.download_chunk_size,
                timeout=self._settings.request_timeout,
            )
        except IoError as e:
            if e.permission_denied:
                self._fail("ERROR: no permission to write to the temp folder.")
            else:
                self._fail(f"ERROR downloading updater: {e}")
            return
        except NetworkError as e:
            self._fail(f"ERROR downloading updater: {e}")
            return

        if not os.path.isfile(session.destination):
            self._fail("Downloaded updater not found.")
            return

        self._enter(UpdateState.LAUNCHING)
        self._status.set_status("Launching updater…")
        try:
            self._launch(session.destination)
        except OSError as e:
            self._fail(f"ERROR launching updater: {e}")
            return

        # The updater replaces us; staying alive would mean two instances
        self._enter(UpdateState.TERMINATED)
        logger.info("Updater %s started, exiting", session.latest_version)
        self._request_exit()

    # ── Helpers ──────────────────────────────────────────────────────

    def _enter(self, state: UpdateState):
        self.state = state
        self.history.append(state)
        logger.debug("Update state -> %s", state.value)
        if self._on_state:
            self._on_state(state)

    def _fail(self, message: str):
        logger.error(message)
        self._status.set_status(message)
        self._status.hide_progress()
        self._enter(UpdateState.FAILED)


# ── QThread Worker ───────────────────────────────────────────────────

# Import PyQt6 only when the worker is actually used (lazy import
# to keep UpdaterLauncher itself free of Qt dependency)

def _get_worker_class():
    """Lazy import to avoid PyQt6 at module level."""
    from PyQt6.QtCore import QThread, pyqtSignal

    class UpdateWorker(QThread):
        """Background worker for the startup update check.

        Emits signals that are automatically dispatched to the main thread.
        """

        update_available = pyqtSignal(object)    # packaging Version
        state_changed = pyqtSignal(object)       # UpdateState
        exit_requested = pyqtSignal()            # updater started, quit now

        def __init__(self, settings: AppSettings, status: StatusSink,
                     cancel: CancellationToken, parent=None):
            super().__init__(parent)
            self._cancel = cancel
            self._launcher = UpdaterLauncher(
                settings, status,
                request_exit=self.exit_requested.emit,
                on_update_available=self.update_available.emit,
                on_state=self.state_changed.emit,
            )

        def check(self):
            """Start the background update check."""
            self.start()

        def run(self):
            """Thread entry point."""
            self._launcher.run(self._cancel)

    return UpdateWorker


# Module-level accessor
_UpdateWorkerClass = None


def get_update_worker_class():
    """Get the UpdateWorker class (lazy-imported to avoid PyQt6 at import time)."""
    global _UpdateWorkerClass
    if _UpdateWorkerClass is None:
        _UpdateWorkerClass = _get_worker_class()
    return _UpdateWorkerClass
