"""Remove an environment from the registry."""

from __future__ import annotations

import logging

from bluegreen.core.protocols import IEnvironmentStore
from bluegreen.models.history import TaskStatus
from bluegreen.tasks.base import Task

logger = logging.getLogger(__name__)


class ForgetEnvironmentTask(Task):
    def __init__(self, position: int, env_name: str, *, environment_store: IEnvironmentStore) -> None:
        super().__init__(position)
        self._env_name = env_name
        self._environment_store = environment_store

    def process(self, noop: bool) -> TaskStatus:
        self._environment_store.get(self._env_name)
        logger.info("Unregistering environment '%s'%s", self._env_name, self.noop_remark(noop))
        if noop:
            return TaskStatus.NOOP
        self._environment_store.delete(self._env_name)
        return TaskStatus.DONE
