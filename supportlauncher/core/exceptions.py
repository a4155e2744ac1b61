"""Error taxonomy for the update flow and the process supervisor."""


class SupportLauncherError(Exception):
    """Base class for launcher errors."""

    def __init__(self, message, error_code=None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class NetworkError(SupportLauncherError):
    """Unreachable host, non-success status, timeout or truncated body."""

    def __init__(self, message, status: int | None = None):
        super().__init__(message, error_code=status)
        self.status = status


class ParseError(SupportLauncherError):
    """Malformed version text."""
    pass


class IoError(SupportLauncherError):
    """Disk read/write failure, including permission denial."""

    def __init__(self, message, permission_denied: bool = False):
        super().__init__(message)
        self.permission_denied = permission_denied


class MissingExecutable(SupportLauncherError):
    """An expected binary is not on disk."""
    pass


class Cancelled(SupportLauncherError):
    """Cooperative cancellation was observed."""

    def __init__(self, message="Operation cancelled"):
        super().__init__(message)
