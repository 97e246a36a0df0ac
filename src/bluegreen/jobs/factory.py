"""Maps a command-line job name and its parameters to a fully wired job."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from bluegreen.core.exceptions import CmdlineError
from bluegreen.core.protocols import IClock, IEnvironmentStore
from bluegreen.jobs.go_live import GoLiveJob
from bluegreen.jobs.history_service import HistoryService
from bluegreen.jobs.sequence_job import TaskSequenceJob
from bluegreen.jobs.staging_deploy import StagingDeployJob
from bluegreen.jobs.teardown import RollbackStageJob, TeardownCommitJob
from bluegreen.tasks.dependencies import TaskDependencies

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobDefinition:
    """How one job name is invoked.

    ``params`` maps each required command-line parameter to the job's
    constructor keyword, ``optional_params`` the same for parameters that may
    be left out. ``env1``/``env2`` name the parameters that identify
    the job's environments in job history.
    """

    job_class: type[TaskSequenceJob]
    description: str
    params: Mapping[str, str]
    existing_envs: tuple[str, ...]
    env1: str
    env2: str | None = None
    optional_params: Mapping[str, str] = field(default_factory=dict)


JOB_DEFINITIONS: dict[str, JobDefinition] = {
    "stagingDeploy": JobDefinition(
        job_class=StagingDeployJob,
        description="Spins up a new stage env with a copy of the live database and a new application vm",
        params={"liveEnv": "live_env", "stageEnv": "stage_env", "dbMap": "db_map"},
        existing_envs=("liveEnv",),
        env1="liveEnv",
        env2="stageEnv",
        optional_params={"packages": "packages"},
    ),
    "goLive": JobDefinition(
        job_class=GoLiveJob,
        description="Swaps the stage env into live service behind the fixed load balancer",
        params={"oldLiveEnv": "old_live_env", "newLiveEnv": "new_live_env", "fixedLbName": "fixed_lb_name"},
        existing_envs=("oldLiveEnv", "newLiveEnv"),
        env1="oldLiveEnv",
        env2="newLiveEnv",
    ),
    "rollbackStage": JobDefinition(
        job_class=RollbackStageJob,
        description="Tears down the stage env and its test database, keeping the live env",
        params={"stageEnv": "stage_env", "liveEnv": "live_env"},
        existing_envs=("stageEnv", "liveEnv"),
        env1="stageEnv",
        optional_params={"stopServices": "stop_services"},
    ),
    "teardownCommit": JobDefinition(
        job_class=TeardownCommitJob,
        description="Tears down the old live env after a goLive",
        params={"oldLiveEnv": "old_live_env"},
        existing_envs=("oldLiveEnv",),
        env1="oldLiveEnv",
        optional_params={"stopServices": "stop_services"},
    ),
}


def explain_jobs() -> str:
    """Usage text listing every job and its required parameters."""
    lines = ["Jobs:"]
    for job_name, definition in JOB_DEFINITIONS.items():
        params = " ".join(
            f"--{p} key=value ..." if p == "dbMap" else f"--{p} <{p}>" for p in definition.params
        )
        optional = " ".join(f"[--{p} <{p}> ...]" for p in definition.optional_params)
        lines.append(f"  {job_name} {params} {optional}".rstrip())
        lines.append(f"      {definition.description}")
    return "\n".join(lines)


class JobFactory:
    """Validates job parameters, looks up the prior run, and builds the job."""

    def __init__(self, *, history_service: HistoryService, environment_store: IEnvironmentStore,
                 deps: TaskDependencies, clock: IClock, max_age: timedelta) -> None:
        self._history_service = history_service
        self._environment_store = environment_store
        self._deps = deps
        self._clock = clock
        self._max_age = max_age

    def make_job(self, job_name: str, params: Mapping[str, Any], command_line: str,
                 noop: bool = False, force: bool = False) -> TaskSequenceJob:
        definition = JOB_DEFINITIONS.get(job_name)
        if definition is None:
            raise CmdlineError(f"Unknown job name '{job_name}'\n{explain_jobs()}")
        missing = [f"--{p}" for p in definition.params if not params.get(p)]
        if missing:
            raise CmdlineError(f"Job '{job_name}' requires {', '.join(missing)}")
        for param in definition.existing_envs:
            if self._environment_store.find(params[param]) is None:
                raise CmdlineError(f"--{param}: environment '{params[param]}' not found")

        env1 = params[definition.env1]
        env2 = params[definition.env2] if definition.env2 else None
        old_job_history = self._history_service.find_last_relevant_job_history(
            definition.job_class.__name__, env1, env2, self._max_age,
        )
        kwargs = {kwarg: params[param] for param, kwarg in definition.params.items()}
        kwargs.update(
            {kwarg: params[param] for param, kwarg in definition.optional_params.items() if params.get(param)}
        )
        logger.info("Making job %s with %s (noop=%s, force=%s)", job_name, kwargs, noop, force)
        return definition.job_class(
            **kwargs,
            deps=self._deps,
            command_line=command_line,
            noop=noop,
            force=force,
            old_job_history=old_job_history,
            history_service=self._history_service,
            clock=self._clock,
        )
