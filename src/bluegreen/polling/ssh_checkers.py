"""Progress checker for vm creation driven by commands on an ssh host."""

from __future__ import annotations

import logging
import re

from bluegreen.clients.ssh.substitution import HOSTNAME, substitute_variables
from bluegreen.core.exceptions import UnexpectedStatusError
from bluegreen.core.protocols import ISshClient
from bluegreen.models.environment import ApplicationVm
from bluegreen.polling.base import ProgressCheckerBase

logger = logging.getLogger(__name__)

_LINE_SPLIT = re.compile(r"[\r\n]+")


def first_capture(output: str, pattern: re.Pattern[str]) -> str | None:
    """Group 1 of the first line matching ``pattern``, skipping blank captures."""
    for line in _LINE_SPLIT.split(output):
        match = pattern.search(line)
        if match and match.group(1) and match.group(1).strip():
            return match.group(1)
    return None


def any_line_matches(output: str, pattern: re.Pattern[str]) -> bool:
    return any(pattern.search(line) for line in _LINE_SPLIT.split(output))


class SshVmCreateProgressChecker(ProgressCheckerBase[ApplicationVm]):
    """Reads hostname/ip from the create command's output, then polls until the vm is done."""

    def __init__(self, initial_output: str, log_context: str, ssh_client: ISshClient,
                 target_description: str, *, initial_regexp_hostname: str,
                 initial_regexp_ipaddress: str, followup_command: str,
                 followup_regexp_done: str, followup_regexp_error: str) -> None:
        super().__init__(log_context)
        self._initial_output = initial_output
        self._ssh_client = ssh_client
        self._target_description = target_description
        self._followup_command = followup_command
        self._pattern_hostname = re.compile(initial_regexp_hostname)
        self._pattern_ipaddress = re.compile(initial_regexp_ipaddress)
        self._pattern_done = re.compile(followup_regexp_done)
        self._pattern_error = re.compile(followup_regexp_error)
        self.hostname: str | None = None
        self.ip_address: str | None = None

    @property
    def description(self) -> str:
        return f"SSH VM Creation by {self._target_description}"

    def _context(self) -> str:
        return (f"{self._log_context}SSH VM Creation for hostname '{self.hostname}', "
                f"ipAddress {self.ip_address}: ")

    def initial_check(self) -> None:
        if not self._initial_output or not self._initial_output.strip():
            raise UnexpectedStatusError(f"Blank initial output from {self.description}")
        logger.debug("Initial output from %s:\n%s", self.description, self._initial_output)
        self.hostname = self._required_capture("hostname", self._pattern_hostname)
        self.ip_address = self._required_capture("ipAddress", self._pattern_ipaddress)
        logger.info("%sSTARTED", self._context())

    def _required_capture(self, capture_name: str, pattern: re.Pattern[str]) -> str:
        value = first_capture(self._initial_output, pattern)
        if value is None:
            raise UnexpectedStatusError(
                f"{self._log_context}Could not find result value '{capture_name}' in initial output"
            )
        return value

    def followup_check(self, wait_num: int) -> None:
        command = substitute_variables(self._followup_command, {HOSTNAME: self.hostname or ""})
        output = self._ssh_client.exec_command(command.substituted)
        logger.debug("SSH VM Creation state after wait#%d: %s", wait_num, output)
        if any_line_matches(output, self._pattern_error):
            raise UnexpectedStatusError(f"{self._context()}FAILED: {output}")
        if any_line_matches(output, self._pattern_done):
            self._succeed(ApplicationVm(hostname=self.hostname or "", ip_address=self.ip_address or ""))

    def timeout(self) -> ApplicationVm | None:
        logger.error("%sfailed to become available prior to timeout", self._context())
        return None
