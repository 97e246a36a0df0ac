"""Delete the non-live RDS database of an environment being torn down."""

from __future__ import annotations

import logging

from bluegreen.clients.aws import rds_analyzer
from bluegreen.core.config import WaiterParameters
from bluegreen.core.exceptions import ConfigurationError, RdsSnapshotNotFoundError
from bluegreen.core.protocols import IEnvironmentStore, IRdsClient, ISleeper
from bluegreen.models.aws_status import RdsInstanceStatus
from bluegreen.models.history import TaskStatus
from bluegreen.polling.rds_checkers import RdsInstanceProgressChecker, RdsSnapshotDeletedProgressChecker
from bluegreen.polling.waiter import Waiter, wait_for_result
from bluegreen.tasks.base import Task
from bluegreen.tasks.env_loader import EnvironmentLoader, database_context
from bluegreen.tasks.rds_snapshot_restore import make_snapshot_id

logger = logging.getLogger(__name__)


class RdsInstanceDeleteTask(Task):
    """Deletes the instance, its self-named param group, and the snapshot it was made from.

    The snapshot id comes from the database record when the restore saved
    it. Otherwise it is derived from the live env's database, which is
    only read.
    """

    def __init__(self, position: int, delete_env: str, live_env: str, *,
                 environment_store: IEnvironmentStore, rds_client: IRdsClient,
                 waiter_parameters: WaiterParameters, sleeper: ISleeper) -> None:
        super().__init__(position)
        self._delete_env = delete_env
        self._live_env = live_env
        self._environment_store = environment_store
        self._rds_client = rds_client
        self._waiter_parameters = waiter_parameters
        self._sleeper = sleeper

    def process(self, noop: bool) -> TaskStatus:
        loader = EnvironmentLoader(self._environment_store, self._delete_env)
        _, logical, physical = loader.load_physical_database()
        context = database_context("Environment", self._delete_env, logical.logical_name, physical.instance_name)
        if physical.live:
            raise ConfigurationError(f"{context}Refusing to delete a LIVE database")
        snapshot_id = physical.source_snapshot_id or self._derive_snapshot_id()

        logger.info("%sRequesting description of target RDS instance", context)
        instance = self._rds_client.describe_instance(physical.instance_name)
        param_group_name = rds_analyzer.find_self_named_param_group_name(instance)

        logger.info("%sDeleting non-live target RDS instance%s", context, self.noop_remark(noop))
        if not noop:
            initial_instance = self._rds_client.delete_instance(physical.instance_name)
            logger.info("%sWaiting for instance to be deleted", context)
            checker = RdsInstanceProgressChecker(physical.instance_name, context, self._rds_client,
                                                 initial_instance, RdsInstanceStatus.DELETING)
            wait_for_result(self._waiter(checker), f"{context}{checker.description} was not deleted")

        if param_group_name:
            logger.info("%sDeleting parameter group '%s', was used only by the deleted database%s",
                        context, param_group_name, self.noop_remark(noop))
            if not noop:
                self._rds_client.delete_parameter_group(param_group_name)
        else:
            logger.info("%sDeleted database did not have its own parameter group", context)

        logger.info("%sDeleting snapshot '%s' from which the deleted database was originally made%s",
                    context, snapshot_id, self.noop_remark(noop))
        if noop:
            return TaskStatus.NOOP
        self._delete_snapshot(snapshot_id, context)
        return TaskStatus.DONE

    def _derive_snapshot_id(self) -> str:
        _, live_logical, live_physical = EnvironmentLoader(
            self._environment_store, self._live_env).load_physical_database()
        return make_snapshot_id(self._live_env, live_logical.logical_name, live_physical.instance_name)

    def _delete_snapshot(self, snapshot_id: str, context: str) -> None:
        try:
            initial_snapshot = self._rds_client.delete_snapshot(snapshot_id)
        except RdsSnapshotNotFoundError:
            logger.warning("%sSnapshot '%s' does not exist, nothing to delete", context, snapshot_id)
            return
        checker = RdsSnapshotDeletedProgressChecker(snapshot_id, context, self._rds_client, initial_snapshot)
        wait_for_result(self._waiter(checker), f"{context}Snapshot was not deleted")

    def _waiter(self, checker) -> Waiter:
        return Waiter(self._waiter_parameters, self._sleeper, checker)
