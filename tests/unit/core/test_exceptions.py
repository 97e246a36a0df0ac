"""Tests for the exception hierarchy."""

from __future__ import annotations

from bluegreen.core.exceptions import (
    BlueGreenError,
    CmdlineError,
    ConfigurationError,
    EnvironmentNotFoundError,
    ErrorKind,
    ExternalServiceError,
    IdentityMismatchError,
    RdsInstanceNotFoundError,
    UnexpectedStatusError,
    WaitTimeoutError,
)


class TestErrorKinds:
    def test_kinds(self):
        assert WaitTimeoutError.kind == ErrorKind.TIMEOUT
        assert IdentityMismatchError.kind == ErrorKind.IDENTITY_MISMATCH
        assert UnexpectedStatusError.kind == ErrorKind.UNEXPECTED_STATUS
        assert CmdlineError.kind == ErrorKind.CONFIGURATION

    def test_hierarchy(self):
        assert issubclass(CmdlineError, ConfigurationError)
        assert issubclass(EnvironmentNotFoundError, ConfigurationError)
        assert issubclass(RdsInstanceNotFoundError, ExternalServiceError)
        assert issubclass(ExternalServiceError, BlueGreenError)


def test_identity_mismatch_message():
    err = IdentityMismatchError("[Environment 'blue']: ", "db-1", "db-2", noun="instance id")
    assert str(err) == "[Environment 'blue']: We requested instance id 'db-1' but the service replied with 'db-2'"
    assert err.requested == "db-1"
    assert err.replied == "db-2"


def test_environment_not_found_message():
    err = EnvironmentNotFoundError("green")
    assert err.env_name == "green"
    assert "green" in str(err)
