"""Job and task execution history models."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field


class TaskStatus(StrEnum):
    PROCESSING = "PROCESSING"
    DONE = "DONE"
    SKIPPED = "SKIPPED"
    NOOP = "NOOP"
    ERROR = "ERROR"


class JobStatus(StrEnum):
    PROCESSING = "PROCESSING"
    DONE = "DONE"
    ERROR = "ERROR"


class TaskHistory(BaseModel):
    """One task attempt within a job run.

    ``(position, task_name)`` is the key used to correlate a task in a new run
    with its counterpart in an older run.
    """

    id: str = ""
    job_history_id: str
    position: int
    task_name: str
    start_time: datetime
    end_time: Optional[datetime] = None
    status: TaskStatus = TaskStatus.PROCESSING


class JobHistory(BaseModel):
    """One job invocation, owning its task attempts in execution order."""

    id: str = ""
    job_name: str
    env1: Optional[str] = None
    env2: Optional[str] = None
    command_line: str = ""
    start_time: datetime
    end_time: Optional[datetime] = None
    status: JobStatus = JobStatus.PROCESSING
    task_histories: list[TaskHistory] = Field(default_factory=list)
