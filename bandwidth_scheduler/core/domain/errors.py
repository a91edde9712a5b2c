"""
Error taxonomy.

Errors are split by how far they are allowed to propagate:
LabelValidationError skips one interval and the engine continues.
AuthError, NotFoundError, ProtocolError and VerificationMismatch end one
action; they are caught at the action executor boundary.
ConfigError is fatal at startup.
"""

from __future__ import annotations


class SchedulerError(Exception):
    """Base class for all scheduler exceptions."""


class ConfigError(SchedulerError):
    """Raised when required settings are missing or invalid."""


class LabelValidationError(SchedulerError):
    """Raised when an interval label does not carry bandwidth values."""


class ActionError(SchedulerError):
    """Base class for errors that terminate a single bandwidth action."""


class AuthError(ActionError):
    """Raised when the provisioning token request fails."""


class NotFoundError(ActionError):
    """Raised when the provisioning inventory does not know the service."""


class ProtocolError(ActionError):
    """Raised when a provisioning call fails or returns an unexpected shape."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class VerificationMismatch(ActionError):
    """Raised when the bandwidth observed after an order differs from the request."""

    def __init__(self, *, expected: str, actual: str | None, status: str) -> None:
        super().__init__(
            f"expected bandwidth {expected!r} but service reports {actual!r} (status {status!r})"
        )
        self.expected = expected
        self.actual = actual
        self.status = status
