"""Run a configured command on this machine and judge it by exit value and output."""

from __future__ import annotations

import logging
import re
import shlex
from collections.abc import Mapping

from bluegreen.clients.ssh.substitution import (
    APPLICATION_VM_MAP,
    ENV,
    LIVE_ENV,
    PHYSICAL_DB_MAP,
    STAGE_ENV,
    VM_HOSTNAME,
    substitute_variables,
)
from bluegreen.core.config import ShellConfig
from bluegreen.core.exceptions import ConfigurationError
from bluegreen.core.protocols import IEnvironmentStore, ILocalShellClient
from bluegreen.models.history import TaskStatus
from bluegreen.models.shell import ShellResult
from bluegreen.polling.ssh_checkers import any_line_matches
from bluegreen.tasks.base import Task
from bluegreen.tasks.env_loader import EnvironmentLoader

logger = logging.getLogger(__name__)


class LocalShellTask(Task):
    """Runs one configured local command against one env or a live/stage pair.

    With ``env_name`` the command sees ``%{env}`` and, when the env has a
    single vm, ``%{vmHostname}``. With ``live_env`` and ``stage_env`` it sees
    ``%{liveEnv}``, ``%{stageEnv}``, ``%{applicationVmMap}`` and
    ``%{physicalDbMap}``. ``extra_substitutions`` never override those.
    """

    def __init__(self, position: int, command_name: str, *, environment_store: IEnvironmentStore,
                 shell_client: ILocalShellClient, shell_config: ShellConfig,
                 env_name: str | None = None, live_env: str | None = None, stage_env: str | None = None,
                 extra_substitutions: Mapping[str, str] | None = None) -> None:
        super().__init__(position)
        if env_name is not None:
            if live_env is not None or stage_env is not None:
                raise ConfigurationError(f"{command_name}: give either env_name or live_env and stage_env")
        elif live_env is None or stage_env is None:
            raise ConfigurationError(f"{command_name}: needs env_name or both live_env and stage_env")
        elif live_env == stage_env:
            raise ConfigurationError(f"{command_name}: live env and stage env are both '{live_env}'")
        self._command_name = command_name
        self._environment_store = environment_store
        self._shell_client = shell_client
        self._shell_config = shell_config
        self._env_name = env_name
        self._live_env = live_env
        self._stage_env = stage_env
        self._extra_substitutions = dict(extra_substitutions or {})

    @property
    def command_name(self) -> str:
        return self._command_name

    def context(self) -> str:
        if self._env_name is not None:
            return f"[{self._command_name}, env '{self._env_name}']: "
        return f"[{self._command_name}, liveEnv '{self._live_env}', stageEnv '{self._stage_env}']: "

    def process(self, noop: bool) -> TaskStatus:
        substitutions = {**self._shell_config.extra_substitutions, **self._extra_substitutions}
        substitutions.update(self._env_substitutions())
        context = self.context()
        logger.info("%sExecuting local shell command%s", context, self.noop_remark(noop))
        if noop:
            return TaskStatus.NOOP

        self._check_config()
        command = substitute_variables(self._shell_config.command, substitutions)
        logger.info("%sCommand: %s", context, command)
        tokens = shlex.split(command.substituted)
        if not tokens:
            raise ConfigurationError(f"{context}Command is empty after substitution")
        result = self._shell_client.run(tokens)
        return self._check_result(result, context)

    def _env_substitutions(self) -> dict[str, str]:
        """Load the envs now so that noop runs still validate them."""
        if self._env_name is not None:
            environment = EnvironmentLoader(self._environment_store, self._env_name).load_environment()
            substitutions = {ENV: self._env_name}
            if len(environment.application_vms) == 1:
                substitutions[VM_HOSTNAME] = environment.application_vms[0].hostname
            return substitutions

        live_loader = EnvironmentLoader(self._environment_store, self._live_env)
        stage_loader = EnvironmentLoader(self._environment_store, self._stage_env)
        _, live_vm = live_loader.load_application_vm()
        _, stage_vm = stage_loader.load_application_vm()
        _, _, live_physical = live_loader.load_physical_database()
        _, _, stage_physical = stage_loader.load_physical_database()
        return {
            LIVE_ENV: self._live_env,
            STAGE_ENV: self._stage_env,
            APPLICATION_VM_MAP: ",".join(
                [live_vm.hostname, live_vm.ip_address, stage_vm.hostname, stage_vm.ip_address]
            ),
            PHYSICAL_DB_MAP: f"{live_physical.instance_name},{stage_physical.instance_name}",
        }

    def _check_config(self) -> None:
        config = self._shell_config
        if not config.command.strip():
            raise ConfigurationError(f"{self.context()}No command configured")
        if config.exitvalue_success is None and not config.regexp_error:
            raise ConfigurationError(f"{self.context()}Configure exitvalue_success or regexp_error")

    def _check_result(self, result: ShellResult, context: str) -> TaskStatus:
        config = self._shell_config
        if config.regexp_error and any_line_matches(result.output, re.compile(config.regexp_error)):
            logger.error("%sCommand output matched error regexp '%s'", context, config.regexp_error)
            return TaskStatus.ERROR
        if config.exitvalue_success is not None and result.exit_value != config.exitvalue_success:
            logger.error("%sCommand exit value %d, expected %d", context, result.exit_value,
                         config.exitvalue_success)
            return TaskStatus.ERROR
        logger.info("%sCommand succeeded with exit value %d", context, result.exit_value)
        return TaskStatus.DONE
