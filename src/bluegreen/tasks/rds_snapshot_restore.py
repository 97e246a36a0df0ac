"""Snapshot the live RDS database and restore it as a new stage database.

The stage database gets a copy of the live parameter group and the live
vpc security groups, and is registered as the only database of a new
stage environment.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from bluegreen.clients.aws import rds_analyzer
from bluegreen.core.config import WaiterParameters
from bluegreen.core.exceptions import ConfigurationError, RdsSnapshotNotFoundError
from bluegreen.core.protocols import IEnvironmentStore, IRdsClient, ISleeper
from bluegreen.models.aws_status import RdsInstanceStatus, RdsSnapshotStatus, parse_status
from bluegreen.models.environment import (
    DatabaseType,
    Environment,
    LogicalDatabase,
    PhysicalDatabase,
)
from bluegreen.models.history import TaskStatus
from bluegreen.polling.rds_checkers import (
    RdsInstanceParamGroupProgressChecker,
    RdsInstanceProgressChecker,
    RdsSnapshotAvailableProgressChecker,
    RdsSnapshotDeletedProgressChecker,
)
from bluegreen.polling.waiter import Waiter, wait_for_result
from bluegreen.tasks.base import Task
from bluegreen.tasks.env_loader import EnvironmentLoader, database_context

logger = logging.getLogger(__name__)

JDBC_URL = re.compile(r"(jdbc:mysql://)([^:/]+)(.*)")

SNAPSHOT_PREFIX = "bluegreen"
# '-' already appears inside the tokens and is the only other char RDS allows
SNAPSHOT_ID_DELIMITER = "9"


def make_snapshot_id(env_name: str, logical_name: str, instance_name: str) -> str:
    """Stable snapshot id for the live physical database of an environment."""
    return SNAPSHOT_ID_DELIMITER.join([SNAPSHOT_PREFIX, env_name, logical_name, instance_name])


def make_stage_param_group_name(live_param_group_name: str, live_instance_name: str,
                                stage_instance_name: str) -> str:
    if live_instance_name in live_param_group_name:
        return live_param_group_name.replace(live_instance_name, stage_instance_name)
    return f"{live_param_group_name}-{stage_instance_name}"


def make_stage_physical_url(live_url: str, stage_address: str, context: str = "") -> str:
    """Swap the host of a ``jdbc:mysql://host:port/db`` url for the stage endpoint."""
    if not live_url or not live_url.strip():
        raise ConfigurationError(f"{context}Lost live physical url")
    if not stage_address or not stage_address.strip():
        raise ConfigurationError(f"{context}RDS instance missing endpoint address")
    match = JDBC_URL.fullmatch(live_url)
    if match is None:
        raise ConfigurationError(
            f"{context}Don't know how to replace endpoint in live physical url '{live_url}'"
        )
    return match.group(1) + stage_address + match.group(3)


class RdsSnapshotRestoreTask(Task):
    """Makes a stage copy of the live RDS database from a fresh snapshot."""

    def __init__(self, position: int, live_env: str, stage_env: str, db_map: Mapping[str, str], *,
                 environment_store: IEnvironmentStore, rds_client: IRdsClient,
                 waiter_parameters: WaiterParameters, sleeper: ISleeper) -> None:
        super().__init__(position)
        if live_env == stage_env:
            raise ConfigurationError(
                f"Live env must be different from stage env, cannot target env '{live_env}' for both"
            )
        self._live_env = live_env
        self._stage_env = stage_env
        self._db_map = dict(db_map)
        self._environment_store = environment_store
        self._rds_client = rds_client
        self._waiter_parameters = waiter_parameters
        self._sleeper = sleeper

    def process(self, noop: bool) -> TaskStatus:
        live_logical, live_physical = self._load_live_database()
        stage_instance_name = self._check_db_map(live_logical.logical_name, live_physical.instance_name)
        self._check_no_stage_environment(live_logical.logical_name, stage_instance_name)
        live_context = database_context("liveEnv", self._live_env, live_logical.logical_name,
                                        live_physical.instance_name)
        stage_context = database_context("stageEnv", self._stage_env, live_logical.logical_name,
                                         stage_instance_name)

        logger.info("%sRequesting description of live RDS instance", live_context)
        live_instance = self._rds_client.describe_instance(live_physical.instance_name)
        snapshot_id = make_snapshot_id(self._live_env, live_logical.logical_name, live_physical.instance_name)

        self._delete_prior_snapshot(snapshot_id, live_context, noop)
        restored_snapshot_id = self._snapshot_live(snapshot_id, live_physical.instance_name, live_context, noop)
        stage_param_group_name = self._copy_param_group(live_instance, stage_instance_name, live_context, noop)
        logger.info("%sRestoring snapshot to new stage RDS instance%s", live_context, self.noop_remark(noop))
        logger.info("%sRegistering stage database%s", stage_context, self.noop_remark(noop))
        if noop:
            return TaskStatus.NOOP

        stage_instance = self._restore_stage(restored_snapshot_id, stage_instance_name,
                                             stage_param_group_name, live_instance, live_context)
        self._persist_stage_environment(live_logical, live_physical, stage_instance_name,
                                        stage_instance, snapshot_id, stage_context)
        return TaskStatus.DONE

    def _load_live_database(self) -> tuple[LogicalDatabase, PhysicalDatabase]:
        loader = EnvironmentLoader(self._environment_store, self._live_env)
        _, logical, physical = loader.load_physical_database()
        context = database_context("liveEnv", self._live_env, logical.logical_name, physical.instance_name)
        if not logical.logical_name.strip():
            raise ConfigurationError(f"{context}Live logical database has blank name")
        if not physical.live:
            raise ConfigurationError(f"{context}Physical database record for this env claims it is not live")
        if physical.db_type != DatabaseType.RDS:
            raise ConfigurationError(
                f"{context}Live physical database is type {physical.db_type}, "
                "cannot perform RDS snapshot/restore operations on it"
            )
        if not physical.instance_name.strip():
            raise ConfigurationError(f"{context}Live physical database has blank instance name")
        return logical, physical

    def _check_db_map(self, live_logical_name: str, live_instance_name: str) -> str:
        stage_instance_name = self._db_map.get(live_logical_name)
        if stage_instance_name is None:
            raise ConfigurationError(
                f"Live logical database '{live_logical_name}' is unmapped, "
                "don't know what stage physical instname to create"
            )
        if not stage_instance_name.strip():
            raise ConfigurationError(
                f"You have mapped live logical database '{live_logical_name}' to a blank string, "
                "we don't know what stage physical instname to create"
            )
        if stage_instance_name == live_instance_name:
            raise ConfigurationError(
                f"You have mapped live logical database '{live_logical_name}' to stage physical "
                f"instname '{stage_instance_name}', but live physical database is already using that instname"
            )
        return stage_instance_name

    def _check_no_stage_environment(self, logical_name: str, stage_instance_name: str) -> None:
        stage_env = self._environment_store.find(self._stage_env)
        if stage_env is not None:
            names = [db.logical_name for db in stage_env.logical_databases]
            raise ConfigurationError(
                f"{database_context('stageEnv', self._stage_env, logical_name, stage_instance_name)}"
                f"Stage env exists already, with {len(names)} logical databases {names}, "
                "you must manually destroy the stage env and run this job again"
            )

    def _delete_prior_snapshot(self, snapshot_id: str, context: str, noop: bool) -> None:
        logger.info("%sChecking for prior snapshot of live RDS instance%s", context, self.noop_remark(noop))
        if noop or not self._snapshot_exists(snapshot_id, context):
            return
        logger.info("%sDeleting prior snapshot '%s'", context, snapshot_id)
        initial_snapshot = self._rds_client.delete_snapshot(snapshot_id)
        logger.info("%sWaiting for deletion of old snapshot", context)
        checker = RdsSnapshotDeletedProgressChecker(snapshot_id, context, self._rds_client, initial_snapshot)
        wait_for_result(self._waiter(checker), f"{context}Snapshot was not deleted")

    def _snapshot_exists(self, snapshot_id: str, context: str) -> bool:
        try:
            prior_snapshot = self._rds_client.describe_snapshot(snapshot_id)
        except RdsSnapshotNotFoundError:
            return False
        status = parse_status(RdsSnapshotStatus, prior_snapshot.get("Status"))
        if status == RdsSnapshotStatus.DELETED:
            return False
        if status in (RdsSnapshotStatus.CREATING, RdsSnapshotStatus.DELETING):
            logger.warning("%sPrior snapshot '%s' has transitional status %s, "
                           "requesting its deletion right now will probably fail", context, snapshot_id, status)
        return True

    def _snapshot_live(self, snapshot_id: str, live_instance_name: str, context: str,
                       noop: bool) -> str:
        logger.info("%sTaking snapshot of live RDS instance%s", context, self.noop_remark(noop))
        if noop:
            return snapshot_id
        initial_snapshot = self._rds_client.create_snapshot(snapshot_id, live_instance_name)
        logger.info("%sWaiting for snapshot to become available", context)
        checker = RdsSnapshotAvailableProgressChecker(snapshot_id, context, self._rds_client, initial_snapshot)
        snapshot = wait_for_result(self._waiter(checker), f"{context}Snapshot did not become available")
        return snapshot["DBSnapshotIdentifier"]

    def _copy_param_group(self, live_instance: dict[str, Any], stage_instance_name: str,
                          context: str, noop: bool) -> str:
        live_param_group_name = rds_analyzer.find_self_named_or_default_param_group_name(live_instance)
        if not live_param_group_name:
            raise ConfigurationError(f"{context}Live RDS instance has no parameter group")
        stage_param_group_name = make_stage_param_group_name(
            live_param_group_name, live_instance["DBInstanceIdentifier"], stage_instance_name,
        )
        logger.info("%sCopying live parameter group '%s' to stage parameter group '%s'%s",
                    context, live_param_group_name, stage_param_group_name, self.noop_remark(noop))
        if not noop:
            self._rds_client.copy_parameter_group(live_param_group_name, stage_param_group_name)
        return stage_param_group_name

    def _restore_stage(self, snapshot_id: str, stage_instance_name: str,
                       stage_param_group_name: str, live_instance: dict[str, Any],
                       context: str) -> dict[str, Any]:
        subnet_group_name = rds_analyzer.extract_subnet_group_name(live_instance)
        stage_instance = self._rds_client.restore_instance_from_snapshot(
            stage_instance_name, snapshot_id, subnet_group_name,
        )
        stage_instance = self._wait_til_instance_is_available(
            stage_instance_name, stage_instance, RdsInstanceStatus.CREATING, context,
        )

        security_group_ids = rds_analyzer.extract_vpc_security_group_ids(live_instance)
        modified_instance = self._rds_client.modify_instance_with_secgrp_paramgrp(
            stage_instance_name, security_group_ids, stage_param_group_name,
        )
        logger.info("%sWaiting for instance to become available and instance paramgroup "
                    "modification to be fully applied", context)
        checker = RdsInstanceParamGroupProgressChecker(
            stage_instance_name, stage_param_group_name, context, self._rds_client, modified_instance,
        )
        wait_for_result(self._waiter(checker),
                        f"{context}{checker.description} did not become available, "
                        "or paramgroup failed to reach pending-reboot state")

        rebooted_instance = self._rds_client.reboot_instance(stage_instance_name)
        return self._wait_til_instance_is_available(
            stage_instance_name, rebooted_instance, RdsInstanceStatus.REBOOTING, context,
        )

    def _wait_til_instance_is_available(self, instance_name: str, initial_instance: dict[str, Any],
                                        expected_initial_state: RdsInstanceStatus,
                                        context: str) -> dict[str, Any]:
        logger.info("%sWaiting for instance to become available", context)
        checker = RdsInstanceProgressChecker(instance_name, context, self._rds_client,
                                             initial_instance, expected_initial_state)
        return wait_for_result(self._waiter(checker), f"{context}{checker.description} did not become available")

    def _persist_stage_environment(self, live_logical: LogicalDatabase, live_physical: PhysicalDatabase,
                                   stage_instance_name: str, stage_instance: dict[str, Any],
                                   snapshot_id: str, context: str) -> None:
        stage_url = make_stage_physical_url(
            live_physical.url, rds_analyzer.extract_endpoint_address(stage_instance) or "", context,
        )
        stage_physical = PhysicalDatabase(
            db_type=live_physical.db_type,
            instance_name=stage_instance_name,
            live=False,
            url=stage_url,
            username=live_physical.username,
            password=live_physical.password,
            source_snapshot_id=snapshot_id,
        )
        stage_env = Environment(
            env_name=self._stage_env,
            logical_databases=[LogicalDatabase(logical_name=live_logical.logical_name,
                                               physical_database=stage_physical)],
        )
        self._environment_store.save(stage_env)

    def _waiter(self, checker) -> Waiter:
        return Waiter(self._waiter_parameters, self._sleeper, checker)
