"""goLive: make the stage env live behind the fixed load balancer."""

from __future__ import annotations

from typing import Any

from bluegreen.jobs.sequence_job import TaskSequenceJob
from bluegreen.tasks.dependencies import TaskDependencies
from bluegreen.tasks.discovery import DiscoveryTask
from bluegreen.tasks.fixed_elb_flip import FixedElbFlipEc2Task
from bluegreen.tasks.local_shell import LocalShellTask
from bluegreen.tasks.smoke_test import SmokeTestTask
from bluegreen.tasks.swap_databases import SwapDatabasesTask
from bluegreen.tasks.transition import FreezeTask, ThawTask


class GoLiveJob(TaskSequenceJob):
    """Both apps are frozen during the flip; only the new live app is thawed afterwards."""

    def __init__(self, *, old_live_env: str, new_live_env: str, fixed_lb_name: str,
                 deps: TaskDependencies, **job_kwargs: Any) -> None:
        tasks = [
            FreezeTask(1, new_live_env, **deps.transition_kwargs()),
            FreezeTask(2, old_live_env, **deps.transition_kwargs()),
            LocalShellTask(3, "swapDatabases", live_env=old_live_env, stage_env=new_live_env,
                           **deps.shell_kwargs(deps.shell_config.swap_databases)),
            SwapDatabasesTask(4, old_live_env, new_live_env, environment_store=deps.environment_store),
            DiscoveryTask(5, new_live_env, **deps.application_kwargs()),
            SmokeTestTask(6, new_live_env, **deps.application_kwargs()),
            FixedElbFlipEc2Task(
                7, old_live_env, new_live_env, fixed_lb_name,
                environment_store=deps.environment_store, ec2_client=deps.ec2_client,
                elb_client=deps.elb_client, waiter_parameters=deps.waiter_config.fixed_elb_flip,
                sleeper=deps.sleeper,
            ),
            ThawTask(8, new_live_env, **deps.transition_kwargs()),
        ]
        super().__init__(tasks=tasks, env1=old_live_env, env2=new_live_env, **job_kwargs)
