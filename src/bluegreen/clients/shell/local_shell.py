"""Runs configured commands on the machine hosting the job."""

from __future__ import annotations

import logging
import subprocess

from bluegreen.core.exceptions import ExternalServiceError
from bluegreen.models.shell import ShellResult

logger = logging.getLogger(__name__)


class LocalShellClient:
    """Production ILocalShellClient. stderr is merged into the returned output."""

    def __init__(self, timeout_s: int | None = None) -> None:
        self._timeout_s = timeout_s

    def run(self, command_tokens: list[str]) -> ShellResult:
        try:
            completed = subprocess.run(
                command_tokens,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                check=False,
                timeout=self._timeout_s,
            )
        except subprocess.TimeoutExpired as exc:
            raise ExternalServiceError(
                f"Command {command_tokens[0]} did not finish within {self._timeout_s}s"
            ) from exc
        except OSError as exc:
            raise ExternalServiceError(f"Could not run command {command_tokens[0]}: {exc}") from exc
        output = completed.stdout or ""
        for line in output.splitlines():
            logger.debug(line)
        return ShellResult(output=output, exit_value=completed.returncode)
