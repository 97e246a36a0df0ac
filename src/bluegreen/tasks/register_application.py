"""Register the stage vm's application, modeled on the live env's application."""

from __future__ import annotations

import logging

from bluegreen.core.exceptions import ConfigurationError
from bluegreen.core.protocols import IEnvironmentStore
from bluegreen.models.environment import Application
from bluegreen.models.history import TaskStatus
from bluegreen.tasks.base import Task
from bluegreen.tasks.env_loader import EnvironmentLoader

logger = logging.getLogger(__name__)


class RegisterApplicationTask(Task):
    """Gives the stage vm an application with the live scheme, port and url path."""

    def __init__(self, position: int, live_env: str, stage_env: str, *,
                 environment_store: IEnvironmentStore) -> None:
        super().__init__(position)
        self._live_env = live_env
        self._stage_env = stage_env
        self._environment_store = environment_store

    def process(self, noop: bool) -> TaskStatus:
        _, _, live_application = EnvironmentLoader(self._environment_store, self._live_env).load_application()
        stage_loader = EnvironmentLoader(self._environment_store, self._stage_env)
        stage_env, stage_vm = stage_loader.load_application_vm()
        if stage_vm.applications:
            raise ConfigurationError(
                f"{stage_loader.context()}Stage vm '{stage_vm.hostname}' already has "
                f"{len(stage_vm.applications)} applications"
            )
        # assumes the same port in both envs
        stage_application = Application(
            scheme=live_application.scheme,
            hostname=stage_vm.hostname,
            port=live_application.port,
            url_path=live_application.url_path,
        )
        logger.info("%sRegistering stage application %s%s", stage_loader.context(),
                    stage_application.make_hostname_uri(), self.noop_remark(noop))
        if noop:
            return TaskStatus.NOOP
        stage_env.application_vms[0].applications.append(stage_application)
        self._environment_store.save(stage_env)
        return TaskStatus.DONE
