"""Data models for the update flow, the supervisor and the status sink."""

import re
from dataclasses import dataclass
from enum import Enum

from packaging.version import Version, InvalidVersion

from supportlauncher.core.cancellation import CancellationToken
from supportlauncher.core.exceptions import ParseError

# major.minor[.build[.revision]], digits only
_VERSION_RE = re.compile(r'^\d+(\.\d+){1,3}$')


def parse_version(text: str | None) -> Version:
    """Parse a trimmed version string. Raises ParseError on malformed text."""
    if text is None:
        raise ParseError("No version text")
    cleaned = text.strip()
    if not _VERSION_RE.match(cleaned):
        raise ParseError(f"Malformed version text: {cleaned!r}")
    try:
        return Version(cleaned)
    except InvalidVersion as e:
        raise ParseError(f"Malformed version text: {cleaned!r}") from e


def try_parse_version(text: str | None) -> Version | None:
    """Lenient variant: None instead of ParseError."""
    try:
        return parse_version(text)
    except ParseError:
        return None


class UpdateState(Enum):
    IDLE = "idle"
    CHECKING = "checking"
    UP_TO_DATE = "up_to_date"
    STALE = "stale"
    COUNTING_DOWN = "counting_down"
    DOWNLOADING = "downloading"
    LAUNCHING = "launching"
    TERMINATED = "terminated"
    FAILED = "failed"
    CANCELLED = "cancelled"


class RelaunchOutcome(Enum):
    CONFIRMED = "confirmed"
    TIMED_OUT_UNCONFIRMED = "timed_out_unconfirmed"
    MISSING_EXECUTABLE = "missing_executable"
    SPAWN_FAILED = "spawn_failed"


@dataclass
class UpdateSession:
    """State of one check-download-launch cycle. Never persisted."""

    cancel: CancellationToken
    destination: str
    latest_version: Version | None = None


@dataclass(frozen=True)
class StatusSnapshot:
    """What the presentation layer should show right now."""

    text: str = ""
    progress: int | None = None   # None = progress bar hidden
    busy: bool = False            # indeterminate indicator
