"""Job that runs an ordered list of tasks, resuming from a recent prior run.

Tasks run strictly one at a time in position order. A task that raises, or
returns ERROR, stops the job; later tasks are not attempted. A later
invocation of the same job on the same environments skips the tasks this
run finished (see ``skip_remark``), unless ``force`` is set.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from bluegreen.core.exceptions import ConfigurationError
from bluegreen.core.protocols import IClock, ITask
from bluegreen.jobs.history_service import HistoryService
from bluegreen.jobs.task_run import TaskRun, TaskRunProcessor
from bluegreen.models.history import JobHistory, JobStatus, TaskStatus

logger = logging.getLogger(__name__)


class TaskSequenceJob:
    """Runs its tasks in order and records the run in job history (unless noop)."""

    def __init__(
        self,
        *,
        tasks: Sequence[ITask],
        command_line: str,
        noop: bool,
        force: bool,
        env1: str | None,
        env2: str | None,
        old_job_history: JobHistory | None,
        history_service: HistoryService,
        clock: IClock,
    ) -> None:
        self._tasks = list(tasks)
        self._command_line = command_line
        self._noop = noop
        self._force = force
        self._env1 = env1
        self._env2 = env2
        self._old_job_history = old_job_history
        self._history = history_service
        self._clock = clock
        self._processor = TaskRunProcessor(history_service=history_service)
        self._new_job_history: JobHistory | None = None
        self._status: JobStatus | None = None
        self._start_time: datetime | None = None
        self._end_time: datetime | None = None
        self._attempted: list[tuple[ITask, TaskStatus]] = []

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def tasks(self) -> list[ITask]:
        return list(self._tasks)

    @property
    def status(self) -> JobStatus | None:
        """Final status once ``process`` has finished, None before."""
        return self._status

    @property
    def new_job_history(self) -> JobHistory | None:
        return self._new_job_history

    @property
    def attempted(self) -> list[tuple[ITask, TaskStatus]]:
        return list(self._attempted)

    def process(self) -> None:
        self._check_tasks()
        self._start_time = self._clock.now()
        self._status = JobStatus.PROCESSING
        if not self._noop:
            self._new_job_history = self._history.new_job_history_processing(
                self.name, self._env1, self._env2, self._command_line, self._start_time,
            )
        final_status: JobStatus | None = None
        try:
            final_status = self._process_tasks()
        finally:
            self._status = final_status or JobStatus.ERROR
            if self._new_job_history is not None:
                self._history.close_job_history(self._new_job_history, self._status)
                self._end_time = self._new_job_history.end_time
            else:
                self._end_time = self._clock.now()
            logger.info(self.summary())

    def _check_tasks(self) -> None:
        if not self._tasks:
            raise ConfigurationError(f"{self.name} has no tasks")
        positions = [task.position for task in self._tasks]
        expected = list(range(1, len(self._tasks) + 1))
        if positions != expected:
            raise ConfigurationError(
                f"{self.name} task positions must be {expected} in order, got {positions}"
            )

    def _process_tasks(self) -> JobStatus:
        num_tasks = len(self._tasks)
        for task in self._tasks:
            logger.info("TASK #%d of %d BEGIN: %s", task.position, num_tasks, task.name)
            task_run = TaskRun(
                task=task,
                noop=self._noop,
                force=self._force,
                start_time=self._start_time or self._clock.now(),
                new_job_history=self._new_job_history,
                old_job_history=self._old_job_history,
            )
            status = TaskStatus.ERROR
            try:
                status = self._processor.attempt_task(task_run)
            finally:
                self._attempted.append((task, status))
                logger.info("TASK #%d of %d END: %s (%s)", task.position, num_tasks, task.name, status)
            if status == TaskStatus.ERROR:
                logger.error("Task #%d %s ended in ERROR, not attempting the remaining tasks",
                             task.position, task.name)
                return JobStatus.ERROR
        return JobStatus.DONE

    def summary(self) -> str:
        """Multi-line report of how far the job got."""
        attempted_positions = {task.position for task, _ in self._attempted}
        lines = [
            "Job Summary",
            f"CommandLine: {self._command_line}",
            f"JobName: {self.name}",
            f"Noop: {self._noop}",
            f"Force: {self._force}",
            f"StartTime: {self._start_time}",
            f"EndTime: {self._end_time}",
            f"JobStatus: {self._status}",
            "Tasks Attempted:",
        ]
        lines += [f"  #{task.position} {task.name}: {status}" for task, status in self._attempted] or ["  (none)"]
        lines.append("Tasks Not Attempted:")
        not_attempted = [t for t in self._tasks if t.position not in attempted_positions]
        lines += [f"  #{task.position} {task.name}" for task in not_attempted] or ["  (none)"]
        return "\n".join(lines)
