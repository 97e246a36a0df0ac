"""Tests for the single-task skip/run processor."""

from __future__ import annotations

import pytest

from bluegreen.jobs.history_service import HistoryService
from bluegreen.jobs.task_run import TaskRun, TaskRunProcessor, find_prior_task_history
from bluegreen.models.history import JobHistory, TaskHistory, TaskStatus
from tests.fakes import FixedClock, MemoryHistoryStore, RecordingTask
from tests.fakes.clients import T0


@pytest.fixture
def store():
    return MemoryHistoryStore(clock=FixedClock())


@pytest.fixture
def service(store):
    return HistoryService(store=store, clock=FixedClock())


@pytest.fixture
def processor(service):
    return TaskRunProcessor(history_service=service)


def _old_job(*rows: tuple[int, str, TaskStatus]) -> JobHistory:
    return JobHistory(
        id="old", job_name="J", start_time=T0,
        task_histories=[TaskHistory(job_history_id="old", position=p, task_name=n, start_time=T0, status=s)
                        for p, n, s in rows],
    )


def _run(task, *, noop=False, force=False, new_job=None, old_job=None) -> TaskRun:
    return TaskRun(task=task, noop=noop, force=force, start_time=T0,
                   new_job_history=new_job, old_job_history=old_job)


class TestFindPriorTaskHistory:
    def test_matches_position_and_name(self):
        old = _old_job((1, "Task1", TaskStatus.DONE), (2, "Other", TaskStatus.DONE))
        assert find_prior_task_history(RecordingTask(1), old).task_name == "Task1"
        assert find_prior_task_history(RecordingTask(2), old) is None
        assert find_prior_task_history(RecordingTask(1), None) is None


class TestTaskRunProcessor:
    def test_runs_and_records_done(self, processor, service):
        job = service.new_job_history_processing("J", None, None, "", T0)
        task = RecordingTask(1)
        assert processor.attempt_task(_run(task, new_job=job)) == TaskStatus.DONE
        assert task.calls == [False]
        assert [t.status for t in job.task_histories] == [TaskStatus.DONE]
        assert job.task_histories[0].end_time is not None

    def test_skips_prior_done(self, processor, service):
        job = service.new_job_history_processing("J", None, None, "", T0)
        task = RecordingTask(1)
        old = _old_job((1, "Task1", TaskStatus.DONE))
        assert processor.attempt_task(_run(task, new_job=job, old_job=old)) == TaskStatus.SKIPPED
        assert task.calls == []
        assert [t.status for t in job.task_histories] == [TaskStatus.SKIPPED]

    def test_force_reruns_prior_done(self, processor, service):
        job = service.new_job_history_processing("J", None, None, "", T0)
        task = RecordingTask(1)
        old = _old_job((1, "Task1", TaskStatus.DONE))
        assert processor.attempt_task(_run(task, force=True, new_job=job, old_job=old)) == TaskStatus.DONE
        assert task.calls == [False]

    def test_none_result_is_error(self, processor, service):
        job = service.new_job_history_processing("J", None, None, "", T0)
        assert processor.attempt_task(_run(RecordingTask(1, result=None), new_job=job)) == TaskStatus.ERROR
        assert job.task_histories[0].status == TaskStatus.ERROR

    def test_exception_closes_history_with_error(self, processor, service):
        job = service.new_job_history_processing("J", None, None, "", T0)
        with pytest.raises(RuntimeError):
            processor.attempt_task(_run(RecordingTask(1, result=RuntimeError("boom")), new_job=job))
        assert job.task_histories[0].status == TaskStatus.ERROR
        assert job.task_histories[0].end_time is not None

    def test_noop_writes_nothing(self, processor, store):
        task = RecordingTask(1)
        assert processor.attempt_task(_run(task, noop=True)) == TaskStatus.NOOP
        assert task.calls == [True]
        assert store.writes == 0

    def test_noop_skip_writes_nothing(self, processor, store):
        old = _old_job((1, "Task1", TaskStatus.SKIPPED))
        assert processor.attempt_task(_run(RecordingTask(1), noop=True, old_job=old)) == TaskStatus.SKIPPED
        assert store.writes == 0
