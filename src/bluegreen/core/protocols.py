"""Protocol interfaces for all bluegreen abstractions.

Jobs, tasks, and progress checkers depend on these Protocols only, so every
collaborator can be swapped for an in-memory fake in tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Protocol, TypeVar, runtime_checkable

from bluegreen.models.discovery import DiscoveryResult
from bluegreen.models.environment import Application, Environment
from bluegreen.models.freeze import DbFreezeProgress
from bluegreen.models.history import JobHistory, TaskHistory, TaskStatus
from bluegreen.models.shell import ShellResult

T_co = TypeVar("T_co", covariant=True)


# ---------------------------------------------------------------------------
# Time
# ---------------------------------------------------------------------------

@runtime_checkable
class IClock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime: ...


@runtime_checkable
class ISleeper(Protocol):
    """Blocking delay used between polls."""

    def sleep(self, millis: int) -> None: ...


# ---------------------------------------------------------------------------
# Task / Polling
# ---------------------------------------------------------------------------

@runtime_checkable
class ITask(Protocol):
    """One step of a job, identified by its 1-based position and its name."""

    @property
    def position(self) -> int: ...

    @property
    def name(self) -> str: ...

    def process(self, noop: bool) -> TaskStatus | None: ...


@runtime_checkable
class IProgressChecker(Protocol[T_co]):
    """Turns repeated polling of one external resource into a done/result verdict."""

    @property
    def description(self) -> str: ...

    def initial_check(self) -> None: ...

    def followup_check(self, wait_num: int) -> None: ...

    def is_done(self) -> bool: ...

    @property
    def result(self) -> T_co | None: ...

    def timeout(self) -> T_co | None: ...


# ---------------------------------------------------------------------------
# Persistence: History Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IHistoryStore(Protocol):
    """Durable record of job runs and their task attempts."""

    def insert_job_history(self, job_history: JobHistory) -> JobHistory: ...

    def update_job_history(self, job_history: JobHistory) -> None: ...

    def reload_job_history(self, job_history: JobHistory) -> JobHistory: ...

    def find_last_relevant_job_history(
        self, job_name: str, env1: str | None, env2: str | None, max_age: timedelta
    ) -> JobHistory | None: ...

    def list_job_histories(
        self, job_name: str, env1: str | None, env2: str | None, limit: int = 20
    ) -> list[JobHistory]: ...

    def insert_task_history(self, task_history: TaskHistory) -> TaskHistory: ...

    def update_task_history(self, task_history: TaskHistory) -> None: ...


# ---------------------------------------------------------------------------
# Persistence: Environment Store
# ---------------------------------------------------------------------------

@runtime_checkable
class IEnvironmentStore(Protocol):
    """Registry of blue-green environments."""

    def get(self, env_name: str) -> Environment: ...

    def find(self, env_name: str) -> Environment | None: ...

    def list_names(self) -> list[str]: ...

    def save(self, environment: Environment) -> None: ...

    def delete(self, env_name: str) -> None: ...


# ---------------------------------------------------------------------------
# AWS Clients
# ---------------------------------------------------------------------------

@runtime_checkable
class IRdsClient(Protocol):
    """RDS operations; each returns the raw boto3 resource dict."""

    def describe_instance(self, instance_name: str) -> dict[str, Any]: ...

    def describe_snapshot(self, snapshot_id: str) -> dict[str, Any]: ...

    def create_snapshot(self, snapshot_id: str, instance_name: str) -> dict[str, Any]: ...

    def delete_snapshot(self, snapshot_id: str) -> dict[str, Any]: ...

    def copy_parameter_group(self, source_name: str, dest_name: str) -> dict[str, Any]: ...

    def delete_parameter_group(self, param_group_name: str) -> None: ...

    def restore_instance_from_snapshot(
        self, instance_name: str, snapshot_id: str, subnet_group_name: str | None
    ) -> dict[str, Any]: ...

    def modify_instance_with_secgrp_paramgrp(
        self, instance_name: str, security_group_ids: list[str], param_group_name: str
    ) -> dict[str, Any]: ...

    def reboot_instance(self, instance_name: str) -> dict[str, Any]: ...

    def delete_instance(self, instance_name: str) -> dict[str, Any]: ...


@runtime_checkable
class IElbClient(Protocol):
    """Classic load balancer operations."""

    def describe_load_balancer(self, elb_name: str) -> dict[str, Any]: ...

    def describe_instance_health(self, elb_name: str, ec2_instance_id: str) -> dict[str, Any]: ...

    def register_instance(self, elb_name: str, ec2_instance_id: str) -> list[dict[str, Any]]: ...

    def deregister_instance(self, elb_name: str, ec2_instance_id: str) -> list[dict[str, Any]]: ...


@runtime_checkable
class IEc2Client(Protocol):
    """EC2 instance lookups."""

    def describe_instance_by_private_ip(self, private_ip: str) -> dict[str, Any]: ...


# ---------------------------------------------------------------------------
# Shell / Application
# ---------------------------------------------------------------------------

@runtime_checkable
class ISshClient(Protocol):
    """Runs a command on the configured ssh target and returns combined output."""

    def exec_command(self, command: str) -> str: ...


@runtime_checkable
class ILocalShellClient(Protocol):
    """Runs a tokenized command on this machine and returns its output and exit value."""

    def run(self, command_tokens: list[str]) -> ShellResult: ...


@runtime_checkable
class IApplicationSession(Protocol):
    """Authenticated session with one blue-green compliant application."""

    def get_db_freeze_progress(self, outer_try_num: int | None = None) -> DbFreezeProgress | None: ...

    def put_request_transition(
        self, transition_method_path: str, outer_try_num: int | None = None
    ) -> DbFreezeProgress | None: ...

    def put_discover_db(self) -> DiscoveryResult | None: ...


@runtime_checkable
class IApplicationClient(Protocol):
    """Logs in to an application and returns a session bound to it."""

    def authenticate(self, application: Application) -> IApplicationSession: ...
