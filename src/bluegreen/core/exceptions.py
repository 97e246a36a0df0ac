"""Bluegreen exception hierarchy.

Failures that abort a task carry an ``ErrorKind`` so callers and logs can
classify them without parsing message text.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    TIMEOUT = "TIMEOUT"
    IDENTITY_MISMATCH = "IDENTITY_MISMATCH"
    UNEXPECTED_STATUS = "UNEXPECTED_STATUS"
    CONFIGURATION = "CONFIGURATION"


class BlueGreenError(Exception):
    """Base exception for all bluegreen errors."""

    kind: ErrorKind | None = None


class ConfigurationError(BlueGreenError):
    """Bad task ordering, missing environment, or unsupported topology."""

    kind = ErrorKind.CONFIGURATION


class CmdlineError(ConfigurationError):
    """Invalid job name or job parameters on the command line."""


class IdentityMismatchError(BlueGreenError):
    """A polled response names a different resource than the one requested."""

    kind = ErrorKind.IDENTITY_MISMATCH

    def __init__(self, context: str, requested: str, replied: str, noun: str = "id") -> None:
        self.requested = requested
        self.replied = replied
        super().__init__(
            f"{context}We requested {noun} '{requested}' but the service replied with '{replied}'"
        )


class UnexpectedStatusError(BlueGreenError):
    """A resource reported a status outside its known intermediate and terminal sets."""

    kind = ErrorKind.UNEXPECTED_STATUS


class WaitTimeoutError(BlueGreenError):
    """Polling gave up after the maximum number of waits."""

    kind = ErrorKind.TIMEOUT


class ExternalServiceError(BlueGreenError):
    """A call to AWS, the ssh host, or the application failed."""


class RdsInstanceNotFoundError(ExternalServiceError):
    """RDS reports no such db instance."""


class RdsSnapshotNotFoundError(ExternalServiceError):
    """RDS reports no such db snapshot."""


class EnvironmentNotFoundError(ConfigurationError):
    """No environment with the given name is registered."""

    def __init__(self, env_name: str) -> None:
        self.env_name = env_name
        super().__init__(f"Environment '{env_name}' not found")
