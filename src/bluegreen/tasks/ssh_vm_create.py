"""Create the stage environment's application vm by running commands on an ssh host."""

from __future__ import annotations

import logging

from bluegreen.clients.ssh.substitution import ENV, substitute_variables
from bluegreen.core.config import SshConfig, WaiterParameters
from bluegreen.core.protocols import IEnvironmentStore, ISleeper, ISshClient
from bluegreen.models.history import TaskStatus
from bluegreen.polling.ssh_checkers import SshVmCreateProgressChecker
from bluegreen.polling.waiter import Waiter, wait_for_result
from bluegreen.tasks.base import Task
from bluegreen.tasks.env_loader import EnvironmentLoader

logger = logging.getLogger(__name__)


class SshVmCreateTask(Task):
    """Runs the vm-create command, polls until the vm is up, and registers it in the env."""

    def __init__(self, position: int, env_name: str, *, environment_store: IEnvironmentStore,
                 ssh_client: ISshClient, ssh_config: SshConfig,
                 waiter_parameters: WaiterParameters, sleeper: ISleeper) -> None:
        super().__init__(position)
        self._env_name = env_name
        self._environment_store = environment_store
        self._ssh_client = ssh_client
        self._ssh_config = ssh_config
        self._waiter_parameters = waiter_parameters
        self._sleeper = sleeper

    def process(self, noop: bool) -> TaskStatus:
        loader = EnvironmentLoader(self._environment_store, self._env_name)
        environment = loader.load_environment_without_vms()
        context = loader.context()
        logger.info("%sExecuting vm-create command over ssh%s", context, self.noop_remark(noop))
        if noop:
            return TaskStatus.NOOP

        command = substitute_variables(self._ssh_config.vm_create_initial_command, {ENV: self._env_name})
        logger.debug("%sCommand: %s", context, command)
        output = self._ssh_client.exec_command(command.substituted)

        logger.info("%sWaiting for applicationVm to become available", context)
        checker = SshVmCreateProgressChecker(
            output, context, self._ssh_client,
            f"{self._ssh_config.username}@{self._ssh_config.hostname}",
            initial_regexp_hostname=self._ssh_config.vm_create_initial_regexp_hostname,
            initial_regexp_ipaddress=self._ssh_config.vm_create_initial_regexp_ipaddress,
            followup_command=self._ssh_config.vm_create_followup_command,
            followup_regexp_done=self._ssh_config.vm_create_followup_regexp_done,
            followup_regexp_error=self._ssh_config.vm_create_followup_regexp_error,
        )
        waiter = Waiter(self._waiter_parameters, self._sleeper, checker)
        application_vm = wait_for_result(waiter, f"{context}{checker.description} did not become available")

        logger.debug("Persisting new applicationVm %s in env %s", application_vm.hostname, self._env_name)
        environment.application_vms.append(application_vm)
        self._environment_store.save(environment)
        return TaskStatus.DONE
