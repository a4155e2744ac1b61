"""Status line + progress bar — the presentation end of the StatusSink.

Background workers write into the sink; the sink pokes `notify()`, which
emits a signal queued onto the GUI thread, where the latest snapshot is
taken and rendered.
"""

from PyQt6.QtCore import pyqtSignal
from PyQt6.QtWidgets import QWidget, QHBoxLayout, QLabel, QProgressBar

from supportlauncher.core.status import StatusSink


class StatusPanel(QWidget):
    """Status label and progress bar bound to a StatusSink."""

    _changed = pyqtSignal()

    def __init__(self, sink: StatusSink, parent=None):
        super().__init__(parent)
        self._sink = sink
        self.setFixedHeight(40)

        self.setStyleSheet(
            "StatusPanel { background-color: #451A03; "
            "border-top: 1px solid #92400E; }"
        )

        layout = QHBoxLayout(self)
        layout.setContentsMargins(14, 0, 14, 0)
        layout.setSpacing(12)

        self._label = QLabel("")
        self._label.setStyleSheet(
            "color: #FDE68A; font-weight: bold; font-size: 12px; "
            "background: transparent; border: none;"
        )
        layout.addWidget(self._label, 1)

        # Progress bar (hidden by default)
        self._progress = QProgressBar()
        self._progress.setFixedWidth(200)
        self._progress.setFixedHeight(18)
        self._progress.setRange(0, 100)
        self._progress.setValue(0)
        self._progress.setVisible(False)
        self._progress.setStyleSheet(
            "QProgressBar { background-color: #27272A; border: 1px solid #92400E; "
            "border-radius: 4px; text-align: center; color: #FDE68A; font-size: 10px; } "
            "QProgressBar::chunk { background-color: #F59E0B; border-radius: 3px; }"
        )
        layout.addWidget(self._progress)

        self._changed.connect(self._refresh)
        sink.bind(self.notify)

    def notify(self):
        """Called from any thread; the slot runs on the GUI thread."""
        self._changed.emit()

    def detach(self):
        self._sink.bind(None)

    def _refresh(self):
        snap = self._sink.take()
        self._label.setText(snap.text)

        if snap.busy:
            self._progress.setRange(0, 0)       # indeterminate
            self._progress.setVisible(True)
        elif snap.progress is None:
            self._progress.setRange(0, 100)
            self._progress.setValue(0)
            self._progress.setVisible(False)
        else:
            self._progress.setRange(0, 100)
            self._progress.setValue(snap.progress)
            self._progress.setVisible(True)
