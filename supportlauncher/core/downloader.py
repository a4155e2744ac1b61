"""Streaming file download with progress and cooperative cancellation."""

import logging
from http.client import HTTPException
from typing import Callable
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from supportlauncher.branding import AppBranding
from supportlauncher.core.cancellation import CancellationToken
from supportlauncher.core.exceptions import IoError, NetworkError

logger = logging.getLogger(__name__)

# Buffer size for streaming downloads (80 KB)
DOWNLOAD_BUFFER = 81920

REQUEST_TIMEOUT = 20.0


class _ProgressReporter:
    """Forwards percentages, never going backwards and never reporting 100
    before the body is complete."""

    def __init__(self, callback: Callable[[int], None] | None):
        self._callback = callback
        self._last = 0

    def chunk(self, read_total: int, total: int):
        pct = min(int(read_total * 100 / total), 99)
        self._last = max(self._last, pct)
        if self._callback:
            self._callback(self._last)

    def done(self):
        self._last = 100
        if self._callback:
            self._callback(100)


def _content_length(resp) -> int | None:
    value = resp.headers.get('Content-Length')
    try:
        length = int(value) if value is not None else 0
    except ValueError:
        return None
    return length if length > 0 else None


def download(url: str, destination: str,
             on_progress: Callable[[int], None] | None = None,
             cancel: CancellationToken | None = None,
             chunk_size: int = DOWNLOAD_BUFFER,
             timeout: float = REQUEST_TIMEOUT) -> int:
    """Stream `url` into `destination` chunk by chunk. Returns bytes written.

    `on_progress` gets a non-decreasing percentage after every chunk when the
    server declares a Content-Length, and exactly one 100 on success either
    way. Cancellation is checked between chunks; the partial file is left
    for the caller to ignore or remove.

    Raises NetworkError, IoError or Cancelled.
    """
    cancel = cancel or CancellationToken()
    cancel.raise_if_cancelled()
    progress = _ProgressReporter(on_progress)

    req = Request(url, headers={'User-Agent': AppBranding.user_agent()})
    try:
        resp = urlopen(req, timeout=timeout)
    except HTTPError as e:
        raise NetworkError(f"HTTP {e.code} downloading {url}", status=e.code) from e
    except (URLError, HTTPException, OSError) as e:
        raise NetworkError(f"Download failed: {e}") from e

    with resp:
        total = _content_length(resp)
        try:
            out = open(destination, 'wb')
        except OSError as e:
            raise IoError(f"Cannot write {destination}: {e}",
                          permission_denied=isinstance(e, PermissionError)) from e

        read_total = 0
        try:
            with out:
                while True:
                    cancel.raise_if_cancelled()
                    try:
                        chunk = resp.read(chunk_size)
                    except (HTTPException, OSError) as e:
                        raise NetworkError(
                            f"Connection lost after {read_total} bytes: {e}") from e
                    if not chunk:
                        break
                    out.write(chunk)
                    read_total += len(chunk)
                    if total:
                        progress.chunk(read_total, total)
        except OSError as e:
            # write() or the final flush on close
            raise IoError(f"Cannot write {destination}: {e}",
                          permission_denied=isinstance(e, PermissionError)) from e

    if total and read_total < total:
        raise NetworkError(f"Download truncated: {read_total} of {total} bytes")

    progress.done()
    logger.info("Downloaded %s (%d bytes) to %s", url, read_total, destination)
    return read_total
