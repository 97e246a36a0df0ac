"""Teardown jobs: stop an environment's applications, delete its vm and database, then forget the env.

rollbackStage deletes the stage env after a stagingDeploy that will not go
live. teardownCommit deletes the old live env after a goLive.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from bluegreen.clients.ssh.substitution import STOP_SERVICES
from bluegreen.jobs.sequence_job import TaskSequenceJob
from bluegreen.tasks.dependencies import TaskDependencies
from bluegreen.tasks.forget_environment import ForgetEnvironmentTask
from bluegreen.tasks.local_shell import LocalShellTask
from bluegreen.tasks.rds_instance_delete import RdsInstanceDeleteTask
from bluegreen.tasks.ssh_vm_delete import SshVmDeleteTask


class TeardownJob(TaskSequenceJob):
    """``live_env`` is only read, to name the snapshot the deleted database came from.

    ``stop_services`` reaches the shutdownApplications command as ``%{stopServices}``.
    """

    def __init__(self, *, delete_env: str, live_env: str, deps: TaskDependencies,
                 stop_services: Sequence[str] = (), **job_kwargs: Any) -> None:
        shell = deps.shell_config
        tasks = [
            LocalShellTask(1, "shutdownApplications", env_name=delete_env,
                           extra_substitutions={STOP_SERVICES: ",".join(stop_services)},
                           **deps.shell_kwargs(shell.shutdown_applications)),
            SshVmDeleteTask(
                2, delete_env,
                environment_store=deps.environment_store, ssh_client=deps.ssh_client,
                ssh_config=deps.ssh_config,
            ),
            LocalShellTask(3, "deleteEnv", env_name=delete_env, **deps.shell_kwargs(shell.delete_env)),
            RdsInstanceDeleteTask(
                4, delete_env, live_env,
                environment_store=deps.environment_store, rds_client=deps.rds_client,
                waiter_parameters=deps.waiter_config.rds_instance_delete, sleeper=deps.sleeper,
            ),
            ForgetEnvironmentTask(5, delete_env, environment_store=deps.environment_store),
        ]
        super().__init__(tasks=tasks, env1=delete_env, env2=None, **job_kwargs)


class RollbackStageJob(TeardownJob):
    def __init__(self, *, stage_env: str, live_env: str, deps: TaskDependencies,
                 **job_kwargs: Any) -> None:
        super().__init__(delete_env=stage_env, live_env=live_env, deps=deps, **job_kwargs)


class TeardownCommitJob(TeardownJob):
    def __init__(self, *, old_live_env: str, deps: TaskDependencies, **job_kwargs: Any) -> None:
        super().__init__(delete_env=old_live_env, live_env=old_live_env, deps=deps, **job_kwargs)
