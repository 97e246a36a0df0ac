"""Loads an environment from the registry and asserts topology preconditions.

Tasks currently support one logical database per environment and one
application vm running one application.
"""

from __future__ import annotations

from bluegreen.core.exceptions import ConfigurationError
from bluegreen.core.protocols import IEnvironmentStore
from bluegreen.models.environment import (
    Application,
    ApplicationVm,
    Environment,
    LogicalDatabase,
    PhysicalDatabase,
)


class EnvironmentLoader:
    """Reads one named environment and hands out its single database / vm / application."""

    def __init__(self, environment_store: IEnvironmentStore, env_name: str) -> None:
        self._store = environment_store
        self._env_name = env_name
        self.environment: Environment | None = None

    @property
    def env_name(self) -> str:
        return self._env_name

    def context(self) -> str:
        return f"[Environment '{self._env_name}']: "

    def load_environment(self) -> Environment:
        self.environment = self._store.get(self._env_name)
        return self.environment

    def load_physical_database(self) -> tuple[Environment, LogicalDatabase, PhysicalDatabase]:
        environment = self.load_environment()
        if len(environment.logical_databases) != 1:
            raise ConfigurationError(
                f"{self.context()}Expected exactly 1 logical database, found "
                f"{len(environment.logical_databases)}"
            )
        logical = environment.logical_databases[0]
        if logical.physical_database is None:
            raise ConfigurationError(
                f"{self.context()}Logical database '{logical.logical_name}' has no physical database"
            )
        return environment, logical, logical.physical_database

    def load_environment_without_vms(self) -> Environment:
        """Return the env, which must not have an application vm yet."""
        environment = self.load_environment()
        vms = environment.application_vms
        if vms:
            raise ConfigurationError(
                f"{self.context()}Expected no application vms before creating one, found {len(vms)}"
            )
        return environment

    def load_application_vm(self) -> tuple[Environment, ApplicationVm]:
        """Return the env and its single vm."""
        environment = self.load_environment()
        vms = environment.application_vms
        if len(vms) != 1:
            raise ConfigurationError(f"{self.context()}Expected exactly 1 application vm, found {len(vms)}")
        return environment, vms[0]

    def load_application(self) -> tuple[Environment, ApplicationVm, Application]:
        environment, vm = self.load_application_vm()
        if len(vm.applications) != 1:
            raise ConfigurationError(
                f"{self.context()}Expected exactly 1 application on vm '{vm.hostname}', "
                f"found {len(vm.applications)}"
            )
        return environment, vm, vm.applications[0]


def database_context(env_label: str, env_name: str, logical_name: str | None = None,
                     instance_name: str | None = None) -> str:
    """Log prefix like ``[liveEnv 'blue', orders - RDS orders-db]: ``."""
    context = f"[{env_label} '{env_name}'"
    if logical_name:
        context += f", {logical_name}"
        if instance_name:
            context += f" - RDS {instance_name}"
    return context + "]: "
