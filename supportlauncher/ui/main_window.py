"""Main application window."""

import logging

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton,
    QApplication,
)

from supportlauncher.branding import AppBranding
from supportlauncher.config.settings import AppSettings
from supportlauncher.core.cancellation import CancellationToken
from supportlauncher.core.models import RelaunchOutcome, UpdateState
from supportlauncher.core.status import StatusSink
from supportlauncher.core.supervisor import ProcessSupervisor, get_relaunch_worker_class
from supportlauncher.core.update_checker import get_update_worker_class
from supportlauncher.system.shell import open_in_browser
from supportlauncher.ui.status_panel import StatusPanel

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Support launcher window. Calls into the core and shows its status."""

    def __init__(self, settings: AppSettings, cancel: CancellationToken):
        super().__init__()
        self._settings = settings
        self._cancel = cancel
        self._status = StatusSink()
        self._supervisor = ProcessSupervisor(
            close_timeout=settings.close_timeout,
            poll_interval=settings.poll_interval,
        )
        self._update_worker = None
        self._relaunch_worker = None
        self._update_started = False
        self._shutting_down = False

        self._setup_ui()

    def _setup_ui(self):
        self.setWindowTitle(AppBranding.window_title())
        self.setMinimumSize(520, 320)

        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(0, 0, 0, 0)

        layout.addWidget(self._create_brand_header())

        body = QVBoxLayout()
        body.setContentsMargins(24, 16, 24, 16)
        body.setSpacing(12)

        self._prompt_label = QLabel("What do you need?")
        self._prompt_label.setStyleSheet("font-size: 15px; font-weight: bold;")
        body.addWidget(self._prompt_label)

        self._btn_support = QPushButton("Start remote support (TeamViewer)")
        self._btn_support.setFixedHeight(44)
        self._btn_support.clicked.connect(self._on_relaunch_support_tool)
        body.addWidget(self._btn_support)

        self._opening_label = QLabel("Opening remote support, please wait…")
        self._opening_label.setVisible(False)
        body.addWidget(self._opening_label)

        links = QHBoxLayout()
        btn_anydesk = QPushButton("Download AnyDesk")
        btn_anydesk.clicked.connect(lambda: open_in_browser(self._settings.anydesk_url))
        links.addWidget(btn_anydesk)
        btn_clients = QPushButton("Client area")
        btn_clients.clicked.connect(lambda: open_in_browser(self._settings.client_area_url))
        links.addWidget(btn_clients)
        body.addLayout(links)
        body.addStretch()

        layout.addLayout(body)

        self._status_panel = StatusPanel(self._status)
        layout.addWidget(self._status_panel)

    def _create_brand_header(self) -> QWidget:
        header = QWidget()
        header.setFixedHeight(56)
        header.setStyleSheet(
            "QWidget { background-color: #27272A; border-bottom: 1px solid #3F3F46; }"
        )
        h_layout = QHBoxLayout(header)
        h_layout.setContentsMargins(16, 8, 16, 8)

        name_label = QLabel(AppBranding.PUBLISHER)
        name_label.setStyleSheet(
            "font-size: 18px; font-weight: bold; color: #3B82F6; background: transparent; border: none;"
        )
        h_layout.addWidget(name_label)
        h_layout.addStretch()

        self._version_label = QLabel(AppBranding.version_label())
        self._version_label.setStyleSheet(
            "font-size: 12px; color: #71717A; background: transparent; border: none;"
        )
        h_layout.addWidget(self._version_label)
        return header

    # --- Update ---

    def check_for_update(self):
        """Start the one-per-lifetime update check."""
        if self._update_started:
            return
        self._update_started = True

        worker_cls = get_update_worker_class()
        self._update_worker = worker_cls(self._settings, self._status, self._cancel.child(), self)
        self._update_worker.update_available.connect(self._on_update_available)
        self._update_worker.state_changed.connect(self._on_update_state)
        self._update_worker.exit_requested.connect(self._on_exit_requested)
        self._update_worker.check()

    def _on_update_available(self, latest):
        self._prompt_label.setVisible(False)
        self._btn_support.setVisible(False)
        self._version_label.setText(AppBranding.update_label(latest))

    def _on_update_state(self, state: UpdateState):
        if state is UpdateState.FAILED:
            # update abandoned, offer support again
            self._prompt_label.setVisible(True)
            self._btn_support.setVisible(self._opening_label.isHidden())

    def _on_exit_requested(self):
        logger.info("Handing off to updater")
        self._quit_app()

    # --- Support tool ---

    def _on_relaunch_support_tool(self):
        if self._relaunch_worker is not None and self._relaunch_worker.isRunning():
            return
        self._btn_support.setVisible(False)
        self._opening_label.setVisible(True)

        worker_cls = get_relaunch_worker_class()
        self._relaunch_worker = worker_cls(self._supervisor, self._settings, self._status, self)
        self._relaunch_worker.relaunch_finished.connect(self._on_relaunch_finished)
        self._relaunch_worker.start()

    def _on_relaunch_finished(self, outcome: RelaunchOutcome):
        logger.info("Relaunch outcome: %s", outcome.value)
        self._opening_label.setVisible(False)
        self._btn_support.setVisible(True)

    # --- Shutdown ---

    def _quit_app(self):
        """Cancel background work and quit the event loop."""
        if self._shutting_down:
            return
        self._shutting_down = True

        self._cancel.cancel()
        self._status_panel.detach()
        QApplication.quit()

    def join_workers(self, timeout_ms: int = 3000) -> bool:
        """Give background threads a moment to wind down after the loop exits.

        Returns False if any worker is still running.
        """
        all_stopped = True
        for worker in (self._update_worker, self._relaunch_worker):
            if worker is not None and worker.isRunning():
                if not worker.wait(timeout_ms):
                    logger.warning("Worker still running at exit")
                    all_stopped = False
        return all_stopped

    def closeEvent(self, event):
        event.accept()
        self._quit_app()

    def showEvent(self, event):
        super().showEvent(event)
        if not self._update_started:
            self.check_for_update()

    def keyPressEvent(self, event):
        if event.key() == Qt.Key.Key_Escape:
            self.close()
        else:
            super().keyPressEvent(event)
