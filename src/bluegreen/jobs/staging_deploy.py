"""stagingDeploy: copy the live database into a new stage env, give it a vm, and deploy to it."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from bluegreen.clients.ssh.substitution import PACKAGES
from bluegreen.jobs.sequence_job import TaskSequenceJob
from bluegreen.tasks.dependencies import TaskDependencies
from bluegreen.tasks.local_shell import LocalShellTask
from bluegreen.tasks.rds_snapshot_restore import RdsSnapshotRestoreTask
from bluegreen.tasks.register_application import RegisterApplicationTask
from bluegreen.tasks.smoke_test import SmokeTestTask
from bluegreen.tasks.ssh_vm_create import SshVmCreateTask
from bluegreen.tasks.transition import FreezeTask, ThawTask


class StagingDeployJob(TaskSequenceJob):
    """The live app is frozen only while its database is being snapshotted.

    ``packages`` lists the packages that differ from the live env; the
    deployPackages command sees them comma-joined as ``%{packages}``.
    """

    def __init__(self, *, live_env: str, stage_env: str, db_map: Mapping[str, str],
                 deps: TaskDependencies, packages: Sequence[str] = (), **job_kwargs: Any) -> None:
        shell = deps.shell_config
        tasks = [
            FreezeTask(1, live_env, **deps.transition_kwargs()),
            RdsSnapshotRestoreTask(
                2, live_env, stage_env, db_map,
                environment_store=deps.environment_store, rds_client=deps.rds_client,
                waiter_parameters=deps.waiter_config.rds_snapshot_restore, sleeper=deps.sleeper,
            ),
            ThawTask(3, live_env, **deps.transition_kwargs()),
            SshVmCreateTask(
                4, stage_env,
                environment_store=deps.environment_store, ssh_client=deps.ssh_client,
                ssh_config=deps.ssh_config, waiter_parameters=deps.waiter_config.ssh_vm_create,
                sleeper=deps.sleeper,
            ),
            LocalShellTask(5, "createStageEnv", live_env=live_env, stage_env=stage_env,
                           **deps.shell_kwargs(shell.create_stage_env)),
            LocalShellTask(6, "deployPackages", live_env=live_env, stage_env=stage_env,
                           extra_substitutions={PACKAGES: ",".join(packages)},
                           **deps.shell_kwargs(shell.deploy_packages)),
            RegisterApplicationTask(7, live_env, stage_env, environment_store=deps.environment_store),
            SmokeTestTask(8, stage_env, **deps.application_kwargs()),
        ]
        super().__init__(tasks=tasks, env1=live_env, env2=stage_env, **job_kwargs)
