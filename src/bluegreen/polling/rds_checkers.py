"""Progress checkers for RDS instance and snapshot lifecycles."""

from __future__ import annotations

import logging
from typing import Any

from bluegreen.clients.aws import rds_analyzer
from bluegreen.core.exceptions import (
    ConfigurationError,
    IdentityMismatchError,
    RdsInstanceNotFoundError,
    RdsSnapshotNotFoundError,
)
from bluegreen.core.protocols import IRdsClient
from bluegreen.models.aws_status import (
    RdsInstanceStatus,
    RdsParameterApplyStatus,
    RdsSnapshotStatus,
    parse_status,
)
from bluegreen.polling.base import ProgressCheckerBase, Verdict, classify

logger = logging.getLogger(__name__)

# expected initial state -> (description verb, intermediate states, final state)
_INSTANCE_PHASES: dict[RdsInstanceStatus, tuple[str, frozenset[RdsInstanceStatus], RdsInstanceStatus]] = {
    RdsInstanceStatus.CREATING: (
        "Create Instance",
        frozenset({RdsInstanceStatus.CREATING, RdsInstanceStatus.BACKING_UP, RdsInstanceStatus.MODIFYING}),
        RdsInstanceStatus.AVAILABLE,
    ),
    RdsInstanceStatus.MODIFYING: (
        "Modify Instance", frozenset({RdsInstanceStatus.MODIFYING}), RdsInstanceStatus.AVAILABLE,
    ),
    RdsInstanceStatus.DELETING: (
        "Delete Instance", frozenset({RdsInstanceStatus.DELETING}), RdsInstanceStatus.DELETED,
    ),
    RdsInstanceStatus.REBOOTING: (
        "Reboot Instance", frozenset({RdsInstanceStatus.REBOOTING}), RdsInstanceStatus.AVAILABLE,
    ),
}


class RdsInstanceProgressChecker(ProgressCheckerBase[dict[str, Any]]):
    """Follows an RDS instance from an expected initial state to its final state.

    The phase (create, modify, delete, reboot) is fixed at construction by
    ``expected_initial_state``. In the delete phase RDS eventually answers
    "not found", which counts as success.
    """

    def __init__(self, instance_id: str, log_context: str, rds_client: IRdsClient,
                 initial_instance: dict[str, Any], expected_initial_state: RdsInstanceStatus) -> None:
        super().__init__(log_context)
        if expected_initial_state not in _INSTANCE_PHASES:
            raise ConfigurationError(
                f"Cannot check progress from initial state '{expected_initial_state}'"
            )
        self._instance_id = instance_id
        self._rds_client = rds_client
        self._initial_instance = initial_instance
        self._expected_initial_state = expected_initial_state
        self._verb, self._intermediate, self._final = _INSTANCE_PHASES[expected_initial_state]

    @property
    def description(self) -> str:
        return f"{self._describe_phase()} '{self._instance_id}'"

    def _describe_phase(self) -> str:
        return self._verb

    def initial_check(self) -> None:
        logger.debug("Initial RDS %s status: %s", self.description, self._status_summary(self._initial_instance))
        self._check_instance_id(self._initial_instance)
        self._check_instance_status(self._initial_instance)

    def followup_check(self, wait_num: int) -> None:
        try:
            db_instance = self._rds_client.describe_instance(self._instance_id)
        except RdsInstanceNotFoundError as exc:
            self._handle_instance_not_found(wait_num, exc)
            return
        self._check_instance_id(db_instance)
        logger.debug("RDS %s status after wait#%d: %s",
                     self.description, wait_num, self._status_summary(db_instance))
        self._check_instance_status(db_instance)

    def _status_summary(self, db_instance: dict[str, Any]) -> str:
        return str(db_instance.get("DBInstanceStatus"))

    def _check_instance_id(self, db_instance: dict[str, Any]) -> None:
        replied = db_instance.get("DBInstanceIdentifier")
        if replied != self._instance_id:
            raise IdentityMismatchError(self._log_context, self._instance_id, str(replied), noun="instance id")

    def _check_instance_status(self, db_instance: dict[str, Any]) -> None:
        raw_status = db_instance.get("DBInstanceStatus")
        verdict = classify(parse_status(RdsInstanceStatus, raw_status), self._intermediate, self._final)
        if verdict == Verdict.DONE:
            self._succeed(db_instance)
        elif verdict == Verdict.UNEXPECTED:
            self._fail(f"Unexpected response status '{raw_status}'")

    def _handle_instance_not_found(self, wait_num: int, exc: RdsInstanceNotFoundError) -> None:
        logger.debug("RDS %s status after wait#%d: %s", self.description, wait_num, exc)
        if self._final == RdsInstanceStatus.DELETED:
            self._succeed({
                "DBInstanceIdentifier": self._instance_id,
                "DBInstanceStatus": str(RdsInstanceStatus.DELETED),
            })
        else:
            self._fail(f"Instance not found: {exc}")


class RdsInstanceParamGroupProgressChecker(RdsInstanceProgressChecker):
    """Follows an instance modify that also swaps in a new param group.

    Done when the instance is available and the param group is pending-reboot.
    """

    def __init__(self, instance_id: str, param_group_name: str, log_context: str,
                 rds_client: IRdsClient, initial_instance: dict[str, Any],
                 expected_initial_state: RdsInstanceStatus = RdsInstanceStatus.MODIFYING) -> None:
        if expected_initial_state != RdsInstanceStatus.MODIFYING:
            raise ConfigurationError(
                f"Cannot check instance paramgroup progress from initial state '{expected_initial_state}'"
            )
        super().__init__(instance_id, log_context, rds_client, initial_instance, expected_initial_state)
        self._param_group_name = param_group_name

    def _describe_phase(self) -> str:
        return "Modify Instance including ParamGroup"

    def _status_summary(self, db_instance: dict[str, Any]) -> str:
        pg_status = rds_analyzer.find_parameter_apply_status(db_instance, self._param_group_name)
        return f"{db_instance.get('DBInstanceStatus')}, paramgroup status: {pg_status}"

    def _check_instance_status(self, db_instance: dict[str, Any]) -> None:
        raw_status = db_instance.get("DBInstanceStatus")
        instance_status = parse_status(RdsInstanceStatus, raw_status)
        pg_status = rds_analyzer.find_parameter_apply_status(db_instance, self._param_group_name)
        instance_done = instance_status == self._final
        pg_done = pg_status == RdsParameterApplyStatus.PENDING_REBOOT
        if instance_done and pg_done:
            self._succeed(db_instance)
            return
        instance_error = not instance_done and instance_status not in self._intermediate
        pg_error = not pg_done and pg_status != RdsParameterApplyStatus.APPLYING
        if instance_error or pg_error:
            self._fail(f"Unexpected response: instance status '{raw_status}', paramgroup status '{pg_status}'")


class RdsSnapshotAvailableProgressChecker(ProgressCheckerBase[dict[str, Any]]):
    """Waits for a newly requested snapshot to become available."""

    def __init__(self, snapshot_id: str, log_context: str, rds_client: IRdsClient,
                 initial_snapshot: dict[str, Any]) -> None:
        super().__init__(log_context)
        self._snapshot_id = snapshot_id
        self._rds_client = rds_client
        self._initial_snapshot = initial_snapshot

    @property
    def description(self) -> str:
        return f"Create Snapshot '{self._snapshot_id}'"

    def initial_check(self) -> None:
        logger.debug("Initial RDS %s status: %s", self.description, self._initial_snapshot.get("Status"))
        self._check_snapshot(self._initial_snapshot)

    def followup_check(self, wait_num: int) -> None:
        snapshot = self._rds_client.describe_snapshot(self._snapshot_id)
        logger.debug("RDS %s status after wait#%d: %s", self.description, wait_num, snapshot.get("Status"))
        self._check_snapshot(snapshot)

    def _check_snapshot(self, snapshot: dict[str, Any]) -> None:
        _check_snapshot_id(self._log_context, self._snapshot_id, snapshot)
        raw_status = snapshot.get("Status")
        verdict = classify(parse_status(RdsSnapshotStatus, raw_status),
                           {RdsSnapshotStatus.CREATING}, RdsSnapshotStatus.AVAILABLE)
        if verdict == Verdict.DONE:
            self._succeed(snapshot)
        elif verdict == Verdict.UNEXPECTED:
            self._fail(f"Unexpected response status '{raw_status}'")


class RdsSnapshotDeletedProgressChecker(ProgressCheckerBase[bool]):
    """Waits for a snapshot to disappear; RDS "not found" is the success signal."""

    def __init__(self, snapshot_id: str, log_context: str, rds_client: IRdsClient,
                 initial_snapshot: dict[str, Any]) -> None:
        super().__init__(log_context)
        self._snapshot_id = snapshot_id
        self._rds_client = rds_client
        self._initial_snapshot = initial_snapshot

    @property
    def description(self) -> str:
        return f"Delete Snapshot '{self._snapshot_id}'"

    def initial_check(self) -> None:
        logger.debug("Initial RDS %s status: %s", self.description, self._initial_snapshot.get("Status"))
        self._check_snapshot(self._initial_snapshot)

    def followup_check(self, wait_num: int) -> None:
        try:
            snapshot = self._rds_client.describe_snapshot(self._snapshot_id)
        except RdsSnapshotNotFoundError as exc:
            logger.debug("RDS %s status after wait#%d: %s", self.description, wait_num, exc)
            self._succeed(True)
            return
        logger.debug("RDS %s status after wait#%d: %s", self.description, wait_num, snapshot.get("Status"))
        self._check_snapshot(snapshot)

    def _check_snapshot(self, snapshot: dict[str, Any]) -> None:
        _check_snapshot_id(self._log_context, self._snapshot_id, snapshot)
        raw_status = snapshot.get("Status")
        verdict = classify(parse_status(RdsSnapshotStatus, raw_status),
                           {RdsSnapshotStatus.DELETING}, RdsSnapshotStatus.DELETED)
        if verdict == Verdict.DONE:
            self._succeed(True)
        elif verdict == Verdict.UNEXPECTED:
            self._fail(f"Unexpected response status '{raw_status}'")


def _check_snapshot_id(log_context: str, snapshot_id: str, snapshot: dict[str, Any]) -> None:
    replied = snapshot.get("DBSnapshotIdentifier")
    if replied != snapshot_id:
        raise IdentityMismatchError(log_context, snapshot_id, str(replied), noun="snapshot id")
