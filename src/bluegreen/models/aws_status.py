"""Status vocabularies reported by AWS for RDS and classic ELB resources.

AWS mixes case and delimiters across APIs ("backing-up", "pending-reboot"),
so RDS values are parsed with ``parse_status`` rather than raw equality.
"""

from __future__ import annotations

from enum import Enum, StrEnum
from typing import TypeVar

E = TypeVar("E", bound=Enum)


def normalize_status(value: str) -> str:
    """Uppercase and treat hyphens as underscores."""
    return value.strip().upper().replace("-", "_")


def parse_status(enum_cls: type[E], value: str | None) -> E | None:
    """Match ``value`` to an enum member by normalized name, or None."""
    if not value:
        return None
    return enum_cls.__members__.get(normalize_status(value))


class RdsInstanceStatus(StrEnum):
    AVAILABLE = "available"
    BACKING_UP = "backing-up"
    CREATING = "creating"
    DELETED = "deleted"
    DELETING = "deleting"
    FAILED = "failed"
    MODIFYING = "modifying"
    REBOOTING = "rebooting"
    RESETTING_MASTER_CREDENTIALS = "resetting-master-credentials"
    STORAGE_FULL = "storage-full"
    INCOMPATIBLE_PARAMETERS = "incompatible-parameters"
    INCOMPATIBLE_RESTORE = "incompatible-restore"


class RdsSnapshotStatus(StrEnum):
    CREATING = "creating"
    AVAILABLE = "available"
    DELETING = "deleting"
    DELETED = "deleted"  # not in the AWS docs, but has been observed


class RdsParameterApplyStatus(StrEnum):
    APPLYING = "applying"
    PENDING_REBOOT = "pending-reboot"
    IN_SYNC = "in-sync"


class ElbInstanceState(StrEnum):
    """Classic ELB instance health; the API reports these exactly as written."""

    IN_SERVICE = "InService"
    OUT_OF_SERVICE = "OutOfService"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: str | None) -> ElbInstanceState | None:
        for member in cls:
            if member.value == value:
                return member
        return None
