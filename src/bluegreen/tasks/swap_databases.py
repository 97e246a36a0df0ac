"""Swap the physical databases of the old live and new live environments."""

from __future__ import annotations

import logging

from bluegreen.core.exceptions import ConfigurationError
from bluegreen.core.protocols import IEnvironmentStore
from bluegreen.models.history import TaskStatus
from bluegreen.tasks.base import Task
from bluegreen.tasks.env_loader import EnvironmentLoader, database_context

logger = logging.getLogger(__name__)


class SwapDatabasesTask(Task):
    """After the swap the new live env points at the live database and the old
    live env at the non-live database that stagingDeploy restored.
    """

    def __init__(self, position: int, old_live_env: str, new_live_env: str, *,
                 environment_store: IEnvironmentStore) -> None:
        super().__init__(position)
        if old_live_env == new_live_env:
            raise ConfigurationError(f"Cannot swap databases of env '{old_live_env}' with itself")
        self._old_live_env = old_live_env
        self._new_live_env = new_live_env
        self._environment_store = environment_store

    def process(self, noop: bool) -> TaskStatus:
        old_env, old_logical, old_physical = EnvironmentLoader(
            self._environment_store, self._old_live_env).load_physical_database()
        new_env, new_logical, new_physical = EnvironmentLoader(
            self._environment_store, self._new_live_env).load_physical_database()
        old_context = database_context("liveEnv", self._old_live_env, old_logical.logical_name,
                                       old_physical.instance_name)
        new_context = database_context("stageEnv", self._new_live_env, new_logical.logical_name,
                                       new_physical.instance_name)
        if not old_physical.live:
            raise ConfigurationError(f"{old_context}Expected physicaldb to be initially live "
                                     "since it is in the current (old) live environment")
        if new_physical.live:
            raise ConfigurationError(f"{new_context}Expected physicaldb to be initially non-live "
                                     "since it is in the new live (i.e. stage) environment")

        logger.info("%sSwapping physical databases used by stage environment and live environment%s",
                    old_context, self.noop_remark(noop))
        if noop:
            return TaskStatus.NOOP
        old_logical.physical_database, new_logical.physical_database = new_physical, old_physical
        self._environment_store.save(old_env)
        self._environment_store.save(new_env)
        return TaskStatus.DONE
