"""Opens and closes job and task history rows through the history store."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from bluegreen.core.protocols import IClock, IHistoryStore
from bluegreen.models.history import JobHistory, JobStatus, TaskHistory, TaskStatus

logger = logging.getLogger(__name__)


class HistoryService:
    """One store write per open, close, or skip."""

    def __init__(self, *, store: IHistoryStore, clock: IClock) -> None:
        self._store = store
        self._clock = clock

    def find_last_relevant_job_history(
        self, job_name: str, env1: str | None, env2: str | None, max_age: timedelta
    ) -> JobHistory | None:
        """Most recent run of the same job on the same envs, newer than ``max_age``."""
        job_history = self._store.find_last_relevant_job_history(job_name, env1, env2, max_age)
        if job_history is None:
            logger.info("No relevant prior job history for %s (%s, %s)", job_name, env1, env2)
        else:
            logger.info("Found relevant prior job history: %s started %s, status %s",
                        job_history.job_name, job_history.start_time, job_history.status)
        return job_history

    def new_job_history_processing(self, job_name: str, env1: str | None, env2: str | None,
                                   command_line: str, start_time: datetime) -> JobHistory:
        job_history = JobHistory(
            job_name=job_name, env1=env1, env2=env2, command_line=command_line,
            start_time=start_time, status=JobStatus.PROCESSING,
        )
        return self._store.insert_job_history(job_history)

    def close_job_history(self, job_history: JobHistory, status: JobStatus) -> JobHistory:
        job_history.status = status
        job_history.end_time = self._clock.now()
        self._store.update_job_history(job_history)
        return job_history

    def new_task_history(self, job_history: JobHistory, position: int, task_name: str,
                         status: TaskStatus) -> TaskHistory:
        """Insert a task row and append it to the owning job history.

        SKIPPED rows are closed on insert.
        """
        start_time = self._clock.now()
        task_history = TaskHistory(
            job_history_id=job_history.id,
            position=position,
            task_name=task_name,
            start_time=start_time,
            end_time=start_time if status == TaskStatus.SKIPPED else None,
            status=status,
        )
        self._store.insert_task_history(task_history)
        job_history.task_histories.append(task_history)
        return task_history

    def close_task_history(self, task_history: TaskHistory, status: TaskStatus) -> TaskHistory:
        task_history.status = status
        task_history.end_time = self._clock.now()
        self._store.update_task_history(task_history)
        return task_history
