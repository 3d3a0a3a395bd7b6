"""Error taxonomy for the sync client.

Every failure the client can surface is a :class:`SyncError`.  The
underlying library exception is always chained as ``__cause__``.
"""

from __future__ import annotations

from pathlib import Path


class SyncError(Exception):
    """Base class for all sync failures."""


class ConfigLoadError(SyncError):
    """The config file is missing, malformed, or holds invalid values."""

    def __init__(self, message: str, *, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = path


class TransportError(SyncError):
    """The HTTP request could not be completed."""

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class ProtocolStatusError(SyncError):
    """The server answered with a nonzero envelope status."""

    def __init__(
        self,
        status: int,
        *,
        error_code: str | None = None,
        operation: str | None = None,
    ) -> None:
        detail = f" ({error_code})" if error_code else ""
        super().__init__(f"{operation or 'request'} failed with status {status}{detail}")
        self.status = status
        self.error_code = error_code
        self.operation = operation

    @property
    def session_expired(self) -> bool:
        return self.error_code == "NOT_LOGGED_IN"


class ContentDecodeError(SyncError):
    """The envelope or its content does not match the declared shape."""

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation


class MailWriteError(SyncError):
    """A message could not be delivered into the Maildir."""

    def __init__(self, message: str, *, path: Path | str | None = None) -> None:
        super().__init__(message)
        self.path = path


class SyncAbortedError(SyncError):
    """An unrecoverable phase failed; the run produced no further output."""

    def __init__(self, phase: str, message: str) -> None:
        super().__init__(f"{phase}: {message}")
        self.phase = phase
