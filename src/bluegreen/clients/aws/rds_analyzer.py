"""Pure helpers that read fields out of boto3 RDS instance dicts."""

from __future__ import annotations

import logging
from typing import Any

from bluegreen.models.aws_status import RdsParameterApplyStatus, parse_status

logger = logging.getLogger(__name__)


def find_self_named_param_group_name(db_instance: dict[str, Any] | None) -> str | None:
    """Name of the instance's param group whose name embeds the instance name, or None.

    Assumes at most one such param group.
    """
    if not db_instance:
        return None
    instance_name = db_instance.get("DBInstanceIdentifier") or ""
    for group in db_instance.get("DBParameterGroups") or []:
        name = group.get("DBParameterGroupName") or ""
        if instance_name and instance_name in name:
            return name
    return None


def find_self_named_or_default_param_group_name(db_instance: dict[str, Any] | None) -> str | None:
    """Like ``find_self_named_param_group_name`` but falls back to the first param group."""
    name = find_self_named_param_group_name(db_instance)
    if name is not None:
        return name
    groups = (db_instance or {}).get("DBParameterGroups") or []
    if groups:
        default_name = groups[0].get("DBParameterGroupName")
        logger.warning(
            "Could not find paramgroup containing the string '%s', falling back to '%s'",
            db_instance.get("DBInstanceIdentifier"), default_name,
        )
        return default_name
    return None


def extract_vpc_security_group_ids(db_instance: dict[str, Any] | None) -> list[str]:
    if not db_instance:
        return []
    return [g["VpcSecurityGroupId"] for g in db_instance.get("VpcSecurityGroups") or []
            if g.get("VpcSecurityGroupId")]


def extract_subnet_group_name(db_instance: dict[str, Any] | None) -> str | None:
    subnet_group = (db_instance or {}).get("DBSubnetGroup") or {}
    return subnet_group.get("DBSubnetGroupName")


def find_parameter_apply_status(
    db_instance: dict[str, Any] | None, param_group_name: str | None
) -> RdsParameterApplyStatus | None:
    if not db_instance or not param_group_name:
        return None
    for group in db_instance.get("DBParameterGroups") or []:
        if group.get("DBParameterGroupName") == param_group_name:
            return parse_status(RdsParameterApplyStatus, group.get("ParameterApplyStatus"))
    return None


def extract_endpoint_address(db_instance: dict[str, Any] | None) -> str | None:
    endpoint = (db_instance or {}).get("Endpoint") or {}
    return endpoint.get("Address")
