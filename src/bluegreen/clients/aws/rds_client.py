"""Thin boto3 wrapper for the RDS calls blue-green jobs make."""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.exceptions import ClientError

from bluegreen.core.exceptions import (
    ExternalServiceError,
    RdsInstanceNotFoundError,
    RdsSnapshotNotFoundError,
)

logger = logging.getLogger(__name__)

PARAM_GROUP_DESCRIPTION = "Nonshared so we can toggle read_only param."

_INSTANCE_NOT_FOUND = {"DBInstanceNotFound", "DBInstanceNotFoundFault"}
_SNAPSHOT_NOT_FOUND = {"DBSnapshotNotFound", "DBSnapshotNotFoundFault"}


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


class RdsClient:
    """Production IRdsClient. Every method returns the raw boto3 resource dict."""

    def __init__(self, region: str = "us-east-1", endpoint_url: str | None = None,
                 client: Any = None) -> None:
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._client = client or boto3.client("rds", **kwargs)

    def _call(self, what: str, fn, **kwargs: Any) -> dict[str, Any]:
        try:
            return fn(**kwargs)
        except ClientError as exc:
            code = _error_code(exc)
            if code in _INSTANCE_NOT_FOUND:
                raise RdsInstanceNotFoundError(f"RDS {what}: {exc}") from exc
            if code in _SNAPSHOT_NOT_FOUND:
                raise RdsSnapshotNotFoundError(f"RDS {what}: {exc}") from exc
            raise ExternalServiceError(f"RDS {what} failed: {exc}") from exc

    def describe_instance(self, instance_name: str) -> dict[str, Any]:
        resp = self._call(f"describe instance {instance_name!r}", self._client.describe_db_instances,
                          DBInstanceIdentifier=instance_name)
        instances = resp.get("DBInstances") or []
        if len(instances) != 1:
            raise ExternalServiceError(
                f"Expected to find one RDS instance with id '{instance_name}', found {len(instances)}"
            )
        return instances[0]

    def describe_snapshot(self, snapshot_id: str) -> dict[str, Any]:
        resp = self._call(f"describe snapshot {snapshot_id!r}", self._client.describe_db_snapshots,
                          DBSnapshotIdentifier=snapshot_id)
        snapshots = resp.get("DBSnapshots") or []
        if len(snapshots) != 1:
            raise ExternalServiceError(
                f"Expected to find one RDS snapshot with id '{snapshot_id}', found {len(snapshots)}"
            )
        return snapshots[0]

    def create_snapshot(self, snapshot_id: str, instance_name: str) -> dict[str, Any]:
        logger.debug("Requesting snapshot '%s' of instance '%s'", snapshot_id, instance_name)
        resp = self._call(f"create snapshot {snapshot_id!r}", self._client.create_db_snapshot,
                          DBSnapshotIdentifier=snapshot_id, DBInstanceIdentifier=instance_name)
        return resp["DBSnapshot"]

    def delete_snapshot(self, snapshot_id: str) -> dict[str, Any]:
        resp = self._call(f"delete snapshot {snapshot_id!r}", self._client.delete_db_snapshot,
                          DBSnapshotIdentifier=snapshot_id)
        return resp["DBSnapshot"]

    def copy_parameter_group(self, source_name: str, dest_name: str) -> dict[str, Any]:
        resp = self._call(f"copy param group {source_name!r}", self._client.copy_db_parameter_group,
                          SourceDBParameterGroupIdentifier=source_name,
                          TargetDBParameterGroupIdentifier=dest_name,
                          TargetDBParameterGroupDescription=PARAM_GROUP_DESCRIPTION)
        return resp["DBParameterGroup"]

    def delete_parameter_group(self, param_group_name: str) -> None:
        self._call(f"delete param group {param_group_name!r}", self._client.delete_db_parameter_group,
                   DBParameterGroupName=param_group_name)

    def restore_instance_from_snapshot(
        self, instance_name: str, snapshot_id: str, subnet_group_name: str | None
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "DBInstanceIdentifier": instance_name,
            "DBSnapshotIdentifier": snapshot_id,
        }
        if subnet_group_name:
            kwargs["DBSubnetGroupName"] = subnet_group_name
        resp = self._call(f"restore instance {instance_name!r}",
                          self._client.restore_db_instance_from_db_snapshot, **kwargs)
        return resp["DBInstance"]

    def modify_instance_with_secgrp_paramgrp(
        self, instance_name: str, security_group_ids: list[str], param_group_name: str
    ) -> dict[str, Any]:
        resp = self._call(f"modify instance {instance_name!r}", self._client.modify_db_instance,
                          DBInstanceIdentifier=instance_name,
                          VpcSecurityGroupIds=security_group_ids,
                          DBParameterGroupName=param_group_name,
                          ApplyImmediately=True)
        return resp["DBInstance"]

    def reboot_instance(self, instance_name: str) -> dict[str, Any]:
        resp = self._call(f"reboot instance {instance_name!r}", self._client.reboot_db_instance,
                          DBInstanceIdentifier=instance_name)
        return resp["DBInstance"]

    def delete_instance(self, instance_name: str) -> dict[str, Any]:
        resp = self._call(f"delete instance {instance_name!r}", self._client.delete_db_instance,
                          DBInstanceIdentifier=instance_name, SkipFinalSnapshot=True)
        return resp["DBInstance"]
