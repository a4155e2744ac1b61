"""Process supervisor — stop, restart and confirm an external tool.

Architecture:
  ProcessSupervisor    — pure Python logic (no Qt dependency), blocking methods
  relaunch_support_tool — drives the configured remote-support tool and
                          reports through the status sink
  RelaunchWorker       — QThread wrapper with pyqtSignal for the window

The process table is re-enumerated on every call. No psutil.Process handle
is kept across the stop → start boundary.
"""

import logging
import os
import subprocess
import time
from typing import Callable, Iterable

import psutil

from supportlauncher.config.settings import AppSettings
from supportlauncher.core.exceptions import MissingExecutable
from supportlauncher.core.models import RelaunchOutcome
from supportlauncher.core.status import StatusSink
from supportlauncher.system.shell import request_close, spawn_detached

logger = logging.getLogger(__name__)

CLOSE_TIMEOUT = 5.0
SETTLE_TIMEOUT = 20.0
POLL_INTERVAL = 0.15


def normalize_name(name: str | None) -> str:
    """Case-insensitive process name without the .exe suffix."""
    name = (name or '').strip().lower()
    if name.endswith('.exe'):
        name = name[:-4]
    return name


class ProcessSupervisor:
    """Finds, stops and (re)starts processes by name.

    All methods are synchronous (blocking) — designed to run in a QThread.
    The OS hooks are injectable so the logic can be driven without touching
    real processes.
    """

    def __init__(self,
                 process_iter: Callable = psutil.process_iter,
                 spawn: Callable[[str], object] = spawn_detached,
                 close: Callable[[psutil.Process], None] = request_close,
                 exists: Callable[[str], bool] = os.path.isfile,
                 close_timeout: float = CLOSE_TIMEOUT,
                 poll_interval: float = POLL_INTERVAL,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self._process_iter = process_iter
        self._spawn = spawn
        self._close = close
        self._exists = exists
        self.close_timeout = close_timeout
        self.poll_interval = poll_interval
        self._clock = clock
        self._sleep = sleep

    # ── Discovery ────────────────────────────────────────────────────

    def find_processes(self, aliases: Iterable[str]) -> list[psutil.Process]:
        """Running processes whose name matches any alias (fresh scan)."""
        wanted = {normalize_name(a) for a in aliases}
        wanted.discard('')
        found = []
        for proc in self._process_iter(['pid', 'name']):
            try:
                if normalize_name(proc.info.get('name')) in wanted:
                    found.append(proc)
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
        return found

    def count_processes(self, aliases: Iterable[str]) -> int:
        """Liveness check: how many matching processes are running now."""
        return len(self.find_processes(aliases))

    # ── Stop ─────────────────────────────────────────────────────────

    def close_processes(self, aliases: Iterable[str],
                        timeout: float | None = None) -> int:
        """Close every matching process, politely first, then by force.

        Failures on one process are logged and skipped. Returns how many
        processes are known to be gone.
        """
        timeout = self.close_timeout if timeout is None else timeout
        closed = 0
        for proc in self.find_processes(aliases):
            try:
                if not proc.is_running():
                    continue
            except psutil.Error:
                continue

            wait_timeout = timeout
            try:
                self._close(proc)
            except psutil.NoSuchProcess:
                closed += 1
                continue
            except (psutil.Error, OSError, subprocess.SubprocessError) as e:
                logger.warning("Close request for pid %s failed: %s", proc.pid, e)
                # request never arrived, go straight to kill
                wait_timeout = 0

            try:
                try:
                    proc.wait(timeout=wait_timeout)
                except psutil.TimeoutExpired:
                    logger.info("pid %d ignored close request, killing", proc.pid)
                    proc.kill()
                    proc.wait()
                closed += 1
            except psutil.NoSuchProcess:
                closed += 1
            except (psutil.Error, OSError, subprocess.SubprocessError) as e:
                logger.warning("Could not stop pid %s: %s", getattr(proc, 'pid', '?'), e)
        if closed:
            logger.info("Closed %d process(es)", closed)
        return closed

    # ── Wait ─────────────────────────────────────────────────────────

    def wait_until(self, condition: Callable[[], bool], timeout: float,
                   interval: float | None = None) -> bool:
        """Poll `condition` until it holds or `timeout` seconds pass."""
        interval = self.poll_interval if interval is None else interval
        deadline = self._clock() + timeout
        while self._clock() < deadline:
            if condition():
                return True
            self._sleep(interval)
        return False

    # ── Relaunch ─────────────────────────────────────────────────────

    def ensure_executable(self, path: str):
        if not path or not self._exists(path):
            raise MissingExecutable(f"{path} does not exist")

    def relaunch(self, executable_path: str, known_process_aliases: Iterable[str],
                 settle_timeout: float = SETTLE_TIMEOUT,
                 confirm_aliases: Iterable[str] | None = None,
                 status: StatusSink | None = None,
                 label: str = "") -> RelaunchOutcome:
        """Stop running instances, start a fresh one, confirm it came up.

        Never raises. TIMED_OUT_UNCONFIRMED is reported, not retried.
        """
        stop_aliases = tuple(known_process_aliases)
        confirm = tuple(confirm_aliases) if confirm_aliases else stop_aliases

        try:
            self.ensure_executable(executable_path)
        except MissingExecutable as e:
            logger.error("Relaunch aborted: %s", e)
            return RelaunchOutcome.MISSING_EXECUTABLE

        if status:
            status.set_status(f"Closing open {label or 'running'} sessions…")
        self.close_processes(stop_aliases)
        if status:
            status.set_status("")

        try:
            self._spawn(executable_path)
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            logger.error("Failed to start %s: %s", executable_path, e)
            return RelaunchOutcome.SPAWN_FAILED

        if self.wait_until(lambda: self.count_processes(confirm) > 0, settle_timeout):
            logger.info("%s confirmed running", executable_path)
            return RelaunchOutcome.CONFIRMED

        logger.warning("%s not seen within %.0fs", executable_path, settle_timeout)
        return RelaunchOutcome.TIMED_OUT_UNCONFIRMED


def relaunch_support_tool(supervisor: ProcessSupervisor, settings: AppSettings,
                          status: StatusSink) -> RelaunchOutcome:
    """Restart the configured remote-support tool, reporting to `status`."""
    path = settings.support_exe_path
    try:
        supervisor.ensure_executable(path)
    except MissingExecutable:
        status.set_status(f"ERROR: {path} does not exist")
        return RelaunchOutcome.MISSING_EXECUTABLE

    status.set_busy()
    try:
        outcome = supervisor.relaunch(
            path,
            settings.support_stop_aliases,
            settle_timeout=settings.settle_timeout,
            confirm_aliases=settings.support_confirm_aliases,
            status=status,
            label="TeamViewer",
        )
    except Exception as e:
        logger.exception("Relaunch failed")
        status.set_status(f"ERROR opening TeamViewer: {e}")
        status.hide_progress()
        return RelaunchOutcome.SPAWN_FAILED

    if outcome is RelaunchOutcome.CONFIRMED:
        status.set_progress(100)
    elif outcome is RelaunchOutcome.TIMED_OUT_UNCONFIRMED:
        status.set_status("Could not confirm that TeamViewer started.")
        status.hide_progress()
    elif outcome is RelaunchOutcome.MISSING_EXECUTABLE:
        status.set_status(f"ERROR: {path} does not exist")
        status.hide_progress()
    else:
        status.set_status("ERROR opening TeamViewer.")
        status.hide_progress()
    return outcome


# ── QThread Worker ───────────────────────────────────────────────────

def _get_worker_class():
    """Lazy import to avoid PyQt6 at module level."""
    from PyQt6.QtCore import QThread, pyqtSignal

    class RelaunchWorker(QThread):
        """Runs relaunch_support_tool off the GUI thread."""

        relaunch_finished = pyqtSignal(object)   # RelaunchOutcome

        def __init__(self, supervisor: ProcessSupervisor, settings: AppSettings,
                     status: StatusSink, parent=None):
            super().__init__(parent)
            self._supervisor = supervisor
            self._settings = settings
            self._status = status

        def run(self):
            outcome = relaunch_support_tool(self._supervisor, self._settings, self._status)
            self.relaunch_finished.emit(outcome)

    return RelaunchWorker


_RelaunchWorkerClass = None


def get_relaunch_worker_class():
    """Get the RelaunchWorker class (lazy-imported to avoid PyQt6 at import time)."""
    global _RelaunchWorkerClass
    if _RelaunchWorkerClass is None:
        _RelaunchWorkerClass = _get_worker_class()
    return _RelaunchWorkerClass
