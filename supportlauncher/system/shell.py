"""OS shell helpers — process spawn, elevation, graceful close, URLs.

Windows is the deployment target. The POSIX branches exist so the rest of
the code can run on a developer machine.
"""

import logging
import os
import subprocess
import webbrowser

import psutil

logger = logging.getLogger(__name__)

IS_WINDOWS = os.name == 'nt'

# ShellExecuteW returns a value <= 32 on failure
_SE_ERR_ACCESSDENIED = 5


def launch_elevated(path: str):
    """Start `path` asking for administrator rights (UAC "runas" verb).

    Raises PermissionError if the user declines the prompt, OSError on any
    other failure.
    """
    if not IS_WINDOWS:
        logger.warning("Elevation not available on this platform, starting %s normally", path)
        spawn_detached(path)
        return

    import ctypes

    ret = int(ctypes.windll.shell32.ShellExecuteW(  # type: ignore[attr-defined]
        None, "runas", path, None, os.path.dirname(path), 1,
    ))
    if ret == _SE_ERR_ACCESSDENIED:
        raise PermissionError(f"Elevation denied for {path}")
    if ret <= 32:
        raise OSError(f"ShellExecuteW failed with code {ret}")
    logger.info("Started elevated: %s", path)


def spawn_detached(path: str) -> subprocess.Popen:
    """Start `path` with normal privileges, detached so it outlives us."""
    if IS_WINDOWS:
        proc = subprocess.Popen(
            [path],
            cwd=os.path.dirname(path) or None,
            creationflags=(
                subprocess.DETACHED_PROCESS
                | subprocess.CREATE_NEW_PROCESS_GROUP
            ),
        )
    else:
        proc = subprocess.Popen(
            [path],
            cwd=os.path.dirname(path) or None,
            start_new_session=True,
        )
    logger.info("Started %s (pid %d)", path, proc.pid)
    return proc


def request_close(proc: psutil.Process):
    """Ask a process to exit the polite way.

    On Windows `taskkill` without /F posts WM_CLOSE to the main window, which
    is what clicking the close button does. Elsewhere this is SIGTERM.
    """
    if not IS_WINDOWS:
        proc.terminate()
        return

    subprocess.run(
        ['taskkill', '/PID', str(proc.pid)],
        capture_output=True, text=True, timeout=5,
        creationflags=subprocess.CREATE_NO_WINDOW,
    )


def open_in_browser(url: str):
    """Fire-and-forget: hand `url` to the default browser."""
    try:
        webbrowser.open(url)
    except Exception as e:
        logger.warning("Failed to open %s: %s", url, e)
