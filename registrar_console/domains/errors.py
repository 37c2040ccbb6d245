"""
Error kinds surfaced by the console engine.

Every error carries a human-readable message and a severity so the
presentation layer can show it without knowing where it came from.
"""

from __future__ import annotations

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"


class ConsoleError(Exception):
    """Base class for errors reported to the presentation layer."""

    severity = SEVERITY_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MalformedMarkup(ConsoleError):
    """Raised when a markup document cannot be decoded or a tree cannot be encoded."""

    def __init__(self, message: str, before: str | None = None, after: str | None = None) -> None:
        super().__init__(message)
        self.before = before
        self.after = after

    @classmethod
    def interspersed(cls, before: str, after: str) -> "MalformedMarkup":
        return cls(f'XML text "{before}" interspersed with "{after}"', before=before, after=after)


class AuthenticationFailed(ConsoleError):
    """Raised when the login command returns anything other than success or already-logged-in."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class CommandRejected(ConsoleError):
    """Raised when an info/create/update command returns a non-success result code."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class TransportFailure(ConsoleError):
    """Raised on network-level failures and non-2xx HTTP statuses."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
