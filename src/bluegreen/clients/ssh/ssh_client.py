"""Paramiko client for running vm create/delete commands on the ssh target host."""

from __future__ import annotations

import logging
from typing import Any

import paramiko

from bluegreen.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


def wrap_command(command: str) -> str:
    """Merge stderr into stdout so a single read sees everything."""
    return f"({command}) 2>&1"


class SshClient:
    """Production ISshClient. Connects lazily and keeps the connection for follow-up commands."""

    def __init__(self, hostname: str, username: str, password: str = "", port: int = 22,
                 connect_timeout_s: int = 30, command_timeout_s: int = 300,
                 client_factory: Any = paramiko.SSHClient) -> None:
        self._hostname = hostname
        self._username = username
        self._password = password
        self._port = port
        self._connect_timeout_s = connect_timeout_s
        self._command_timeout_s = command_timeout_s
        self._client_factory = client_factory
        self._client: paramiko.SSHClient | None = None

    @property
    def description(self) -> str:
        return f"{self._username}@{self._hostname}"

    def _connect(self) -> paramiko.SSHClient:
        if self._client is not None:
            return self._client
        client = self._client_factory()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(
                hostname=self._hostname, port=self._port, username=self._username,
                password=self._password or None, timeout=self._connect_timeout_s,
                auth_timeout=self._connect_timeout_s,
            )
        except paramiko.AuthenticationException as exc:
            raise ExternalServiceError(f"Ssh authentication failed for {self.description}") from exc
        except (paramiko.SSHException, OSError) as exc:
            raise ExternalServiceError(f"Could not connect to {self.description}: {exc}") from exc
        self._client = client
        return client

    def exec_command(self, command: str) -> str:
        """Run ``command`` and return its combined stdout/stderr."""
        client = self._connect()
        logger.debug("Executing over ssh on %s: %s", self.description, command)
        try:
            _stdin, stdout, _stderr = client.exec_command(wrap_command(command), timeout=self._command_timeout_s)
            output = stdout.read().decode("utf-8", errors="replace")
            exit_status = stdout.channel.recv_exit_status()
        except (paramiko.SSHException, OSError) as exc:
            raise ExternalServiceError(f"Ssh command failed on {self.description}: {exc}") from exc
        logger.debug("Ssh exit status %s, output:\n%s", exit_status, output)
        return output

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
