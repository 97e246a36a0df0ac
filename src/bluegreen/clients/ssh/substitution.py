"""Variable substitution for remote command templates.

``%{name}`` is replaced everywhere. ``%{{name}}`` is replaced in the command
that runs but shows as ``XXXXX`` in the loggable copy, for passwords.
Process environment variables fill in anything the caller did not supply.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from bluegreen.core.exceptions import ConfigurationError

BLEEP = "XXXXX"

ENV = "env"
VM_HOSTNAME = "vmHostname"
HOSTNAME = "hostname"
LIVE_ENV = "liveEnv"
STAGE_ENV = "stageEnv"
APPLICATION_VM_MAP = "applicationVmMap"
PHYSICAL_DB_MAP = "physicalDbMap"
PACKAGES = "packages"
STOP_SERVICES = "stopServices"


@dataclass(frozen=True)
class SubstitutionResult:
    substituted: str
    expurgated: str

    def __str__(self) -> str:
        return self.expurgated


def substitute_variables(template: str, substitutions: Mapping[str, str] | None = None,
                         use_process_env: bool = True) -> SubstitutionResult:
    if not template or not template.strip():
        raise ConfigurationError("Command template is blank")
    substituted = expurgated = template
    maps: list[Mapping[str, str]] = [substitutions or {}]
    if use_process_env:
        maps.append(os.environ)
    for mapping in maps:
        for key, value in mapping.items():
            substituted = substituted.replace(f"%{{{{{key}}}}}", value).replace(f"%{{{key}}}", value)
            expurgated = expurgated.replace(f"%{{{{{key}}}}}", BLEEP).replace(f"%{{{key}}}", value)
    return SubstitutionResult(substituted=substituted, expurgated=expurgated)
