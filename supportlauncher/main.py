"""SupportLauncher — entry point."""

import sys
import os
import logging

from supportlauncher.branding import AppBranding
from supportlauncher.config.settings import AppSettings
from supportlauncher.core.cancellation import CancellationToken


def setup_logging(data_dir: str):
    """Configure logging to file and console."""
    log_dir = os.path.join(data_dir, 'logs')
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, 'supportlauncher.log')

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8'),
            logging.StreamHandler(),
        ],
    )


def finish(window, cancel: CancellationToken, exit_code: int,
           hard_exit=os._exit) -> int:
    """Wind down background work after the event loop returns.

    A worker blocked in a request or a process wait cannot be interrupted,
    and Qt aborts if a running QThread is destroyed. If one is still alive
    after the join, flush logs and leave without interpreter teardown.
    """
    logger = logging.getLogger(__name__)
    cancel.cancel()
    if window.join_workers():
        logger.info("Goodbye")
        return exit_code

    logger.warning("Background work still running, exiting without teardown")
    logging.shutdown()
    hard_exit(exit_code)
    return exit_code


def main():
    # High-DPI support
    os.environ.setdefault('QT_ENABLE_HIGHDPI_SCALING', '1')

    settings = AppSettings.from_env()
    settings.ensure_dirs()

    setup_logging(settings.data_dir)
    logger = logging.getLogger(__name__)
    logger.info("%s %s starting", AppBranding.APP_NAME, AppBranding.VERSION)

    # Root cancellation scope: cancelled once, when the window closes
    cancel = CancellationToken()

    from PyQt6.QtWidgets import QApplication
    from supportlauncher.ui.main_window import MainWindow

    app = QApplication(sys.argv)
    app.setApplicationName(AppBranding.APP_NAME)
    app.setOrganizationName(AppBranding.PUBLISHER)
    app.setApplicationVersion(AppBranding.VERSION)

    app.setStyleSheet(DARK_STYLE)

    window = MainWindow(settings, cancel)
    window.show()

    exit_code = app.exec()
    sys.exit(finish(window, cancel, exit_code))


DARK_STYLE = """
QWidget {
    background-color: #1e1e1e;
    color: #cccccc;
    font-size: 13px;
}
QMainWindow {
    background-color: #1e1e1e;
}
QPushButton {
    background-color: #3d3d3d;
    border: 1px solid #555;
    border-radius: 3px;
    padding: 5px 15px;
    color: #cccccc;
}
QPushButton:hover {
    background-color: #4d4d4d;
}
QPushButton:pressed {
    background-color: #555;
}
QLabel {
    background: transparent;
}
"""


if __name__ == '__main__':
    main()
