"""Skip-or-run decision and history bookkeeping for a single task."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from bluegreen.core.protocols import ITask
from bluegreen.jobs.history_service import HistoryService
from bluegreen.jobs.skip_remark import make_skip_remark
from bluegreen.models.history import JobHistory, TaskHistory, TaskStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskRun:
    """A task plus the run-time context it executes in. Not persisted."""

    task: ITask
    noop: bool
    force: bool
    start_time: datetime
    new_job_history: JobHistory | None
    old_job_history: JobHistory | None


def find_prior_task_history(task: ITask, old_job_history: JobHistory | None) -> TaskHistory | None:
    """The old run's attempt at the same (position, name), if any."""
    if old_job_history is None:
        return None
    for task_history in old_job_history.task_histories:
        if task_history.position == task.position and task_history.task_name == task.name:
            return task_history
    return None


class TaskRunProcessor:
    """Attempts one task, skipping it when a prior run already took care of it."""

    def __init__(self, *, history_service: HistoryService) -> None:
        self._history = history_service

    def attempt_task(self, task_run: TaskRun) -> TaskStatus:
        if self._check_skip(task_run):
            return self._skip_task(task_run)
        return self._process_task(task_run)

    def _check_skip(self, task_run: TaskRun) -> bool:
        prior = find_prior_task_history(task_run.task, task_run.old_job_history)
        if prior is None:
            return False
        decision = make_skip_remark(prior.status, task_run.force)
        logger.info("Prior task execution on %s: %s, %s", prior.start_time, prior.status, decision.remark)
        return decision.skip

    def _skip_task(self, task_run: TaskRun) -> TaskStatus:
        if not task_run.noop and task_run.new_job_history is not None:
            self._history.new_task_history(
                task_run.new_job_history, task_run.task.position, task_run.task.name, TaskStatus.SKIPPED,
            )
        return TaskStatus.SKIPPED

    def _process_task(self, task_run: TaskRun) -> TaskStatus:
        task_history: TaskHistory | None = None
        if not task_run.noop and task_run.new_job_history is not None:
            task_history = self._history.new_task_history(
                task_run.new_job_history, task_run.task.position, task_run.task.name, TaskStatus.PROCESSING,
            )
        status: TaskStatus | None = None
        try:
            status = task_run.task.process(task_run.noop)
        finally:
            if task_history is not None:
                self._history.close_task_history(task_history, status or TaskStatus.ERROR)
        return status or TaskStatus.ERROR
