"""Remote version check — plaintext version.txt over HTTPS."""

import logging
from http.client import HTTPException
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from packaging.version import Version

from supportlauncher.branding import AppBranding
from supportlauncher.core.cancellation import CancellationToken
from supportlauncher.core.exceptions import Cancelled, NetworkError, SupportLauncherError
from supportlauncher.core.models import parse_version, try_parse_version

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 20.0

# version.txt is a handful of bytes; anything bigger is not a version file
MAX_VERSION_BYTES = 4096


def fetch_latest_version(url: str, cancel: CancellationToken | None = None,
                         timeout: float = REQUEST_TIMEOUT) -> Version:
    """GET `url`, trim the body and parse it as a Version.

    Raises NetworkError, ParseError or Cancelled.
    """
    cancel = cancel or CancellationToken()
    cancel.raise_if_cancelled()

    req = Request(url, headers={
        'User-Agent': AppBranding.user_agent(),
        'Accept': 'text/plain',
    })
    try:
        with urlopen(req, timeout=timeout) as resp:
            body = resp.read(MAX_VERSION_BYTES)
    except HTTPError as e:
        raise NetworkError(f"HTTP {e.code} fetching {url}", status=e.code) from e
    except (URLError, HTTPException, OSError) as e:
        raise NetworkError(f"Failed to fetch {url}: {e}") from e

    # The request itself can't be interrupted; drop the result if we were
    # cancelled while it was in flight.
    cancel.raise_if_cancelled()

    text = body.decode('utf-8-sig', errors='replace').strip()
    return parse_version(text)


def is_newer(latest: Version | None, current: Version | None) -> bool:
    """Strictly greater. Missing or unparsable versions are never newer.

    Compares the release fields as written, so an extra trailing field
    sorts after its absence: 1.4.0 is newer than 1.4.
    """
    if latest is None or current is None:
        return False
    return latest.release > current.release


class VersionOracle:
    """Compares the published version against the running build."""

    def __init__(self, url: str, current_version: str,
                 timeout: float = REQUEST_TIMEOUT):
        self.url = url
        self.current_version = current_version
        self.timeout = timeout

    def check(self, cancel: CancellationToken | None = None) -> Version | None:
        """Return the latest version if it is newer than ours, else None.

        Fail-open: network and parse failures are logged and treated as
        "nothing to do". Only Cancelled propagates.
        """
        current = try_parse_version(self.current_version)
        if current is None:
            logger.error("Cannot parse current version: %s", self.current_version)
            return None

        try:
            latest = fetch_latest_version(self.url, cancel, self.timeout)
        except Cancelled:
            raise
        except SupportLauncherError as e:
            logger.warning("Update check skipped: %s", e)
            return None

        if not is_newer(latest, current):
            logger.info("Up to date (current %s, published %s)", current, latest)
            return None

        logger.info("Update available: %s -> %s", current, latest)
        return latest
