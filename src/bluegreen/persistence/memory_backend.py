"""In-memory backends for unit tests: dict-backed fakes."""

from __future__ import annotations

import itertools
from datetime import timedelta

from bluegreen.core.clock import SystemClock
from bluegreen.core.exceptions import EnvironmentNotFoundError
from bluegreen.core.protocols import IClock
from bluegreen.models.environment import Environment
from bluegreen.models.history import JobHistory, TaskHistory


class MemoryHistoryStore:
    """Dict-backed IHistoryStore for unit tests.

    Stores copies, so callers only see persisted state through the store methods.
    """

    def __init__(self, clock: IClock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._ids = itertools.count(1)
        self._jobs: dict[str, JobHistory] = {}
        self._tasks: dict[str, list[TaskHistory]] = {}
        self.writes = 0

    def insert_job_history(self, job_history: JobHistory) -> JobHistory:
        if not job_history.id:
            job_history.id = f"job-{next(self._ids)}"
        self._jobs[job_history.id] = job_history.model_copy(update={"task_histories": []})
        self._tasks.setdefault(job_history.id, [])
        self.writes += 1
        return job_history

    def update_job_history(self, job_history: JobHistory) -> None:
        self._jobs[job_history.id] = job_history.model_copy(update={"task_histories": []})
        self.writes += 1

    def reload_job_history(self, job_history: JobHistory) -> JobHistory:
        return self._load(job_history.id)

    def find_last_relevant_job_history(
        self, job_name: str, env1: str | None, env2: str | None, max_age: timedelta
    ) -> JobHistory | None:
        oldest = self._clock.now() - max_age
        candidates = [
            j for j in self._jobs.values()
            if j.job_name == job_name and j.env1 == env1 and j.env2 == env2 and j.start_time > oldest
        ]
        if not candidates:
            return None
        latest = max(candidates, key=lambda j: j.start_time)
        return self._load(latest.id)

    def list_job_histories(
        self, job_name: str, env1: str | None, env2: str | None, limit: int = 20
    ) -> list[JobHistory]:
        matches = sorted(
            (j for j in self._jobs.values() if j.job_name == job_name and j.env1 == env1 and j.env2 == env2),
            key=lambda j: j.start_time, reverse=True,
        )
        return [self._load(j.id) for j in matches[:limit]]

    def insert_task_history(self, task_history: TaskHistory) -> TaskHistory:
        if not task_history.id:
            task_history.id = f"task-{next(self._ids)}"
        self._tasks.setdefault(task_history.job_history_id, []).append(task_history.model_copy())
        self.writes += 1
        return task_history

    def update_task_history(self, task_history: TaskHistory) -> None:
        rows = self._tasks.setdefault(task_history.job_history_id, [])
        for i, row in enumerate(rows):
            if row.id == task_history.id:
                rows[i] = task_history.model_copy()
                break
        else:
            rows.append(task_history.model_copy())
        self.writes += 1

    def add(self, job_history: JobHistory) -> JobHistory:
        """Seed a complete job history, including its task histories."""
        self.insert_job_history(job_history)
        for task_history in job_history.task_histories:
            task_history.job_history_id = job_history.id
            self.insert_task_history(task_history)
        return job_history

    def _load(self, job_history_id: str) -> JobHistory:
        stored = self._jobs[job_history_id]
        return stored.model_copy(
            update={"task_histories": [t.model_copy() for t in self._tasks.get(job_history_id, [])]}
        )


class MemoryEnvironmentStore:
    """Dict-backed IEnvironmentStore for unit tests."""

    def __init__(self, environments: list[Environment] | None = None) -> None:
        self._envs: dict[str, Environment] = {}
        for environment in environments or []:
            self.save(environment)

    def get(self, env_name: str) -> Environment:
        environment = self.find(env_name)
        if environment is None:
            raise EnvironmentNotFoundError(env_name)
        return environment

    def find(self, env_name: str) -> Environment | None:
        environment = self._envs.get(env_name)
        return environment.model_copy(deep=True) if environment else None

    def list_names(self) -> list[str]:
        return sorted(self._envs)

    def save(self, environment: Environment) -> None:
        self._envs[environment.env_name] = environment.model_copy(deep=True)

    def delete(self, env_name: str) -> None:
        self._envs.pop(env_name, None)
