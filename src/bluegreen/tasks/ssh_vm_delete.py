"""Delete an environment's application vm by running a command on an ssh host."""

from __future__ import annotations

import logging
import re

from bluegreen.clients.ssh.substitution import ENV, VM_HOSTNAME, substitute_variables
from bluegreen.core.config import SshConfig
from bluegreen.core.exceptions import ExternalServiceError
from bluegreen.core.protocols import IEnvironmentStore, ISshClient
from bluegreen.models.history import TaskStatus
from bluegreen.polling.ssh_checkers import any_line_matches
from bluegreen.tasks.base import Task
from bluegreen.tasks.env_loader import EnvironmentLoader

logger = logging.getLogger(__name__)


class SshVmDeleteTask(Task):
    """Runs the vm-delete command once; its output must match the success regexp."""

    def __init__(self, position: int, env_name: str, *, environment_store: IEnvironmentStore,
                 ssh_client: ISshClient, ssh_config: SshConfig) -> None:
        super().__init__(position)
        self._env_name = env_name
        self._environment_store = environment_store
        self._ssh_client = ssh_client
        self._ssh_config = ssh_config
        self._pattern_success = re.compile(ssh_config.vm_delete_initial_regexp_success)

    def process(self, noop: bool) -> TaskStatus:
        loader = EnvironmentLoader(self._environment_store, self._env_name)
        environment, application_vm = loader.load_application_vm()
        context = f"{loader.context()}[vm '{application_vm.hostname}']: "
        logger.info("%sExecuting vm-delete command over ssh%s", context, self.noop_remark(noop))
        if noop:
            return TaskStatus.NOOP

        command = substitute_variables(
            self._ssh_config.vm_delete_initial_command,
            {ENV: self._env_name, VM_HOSTNAME: application_vm.hostname},
        )
        logger.debug("%sCommand: %s", context, command)
        output = self._ssh_client.exec_command(command.substituted)
        logger.debug("Command Output:\n%s", output)
        if not any_line_matches(output, self._pattern_success):
            raise ExternalServiceError(f"{context}FAILED: {output}")

        logger.debug("Persisting removal of applicationVm %s from env %s", application_vm.hostname, self._env_name)
        environment.application_vms = [
            vm for vm in environment.application_vms if vm.hostname != application_vm.hostname
        ]
        self._environment_store.save(environment)
        return TaskStatus.DONE
