"""Integration tests for the DynamoDB stores against LocalStack."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from bluegreen.core.clock import SystemClock
from bluegreen.jobs.history_service import HistoryService
from bluegreen.models.history import JobStatus, TaskStatus
from bluegreen.persistence.dynamodb_backend import DynamoDBEnvironmentStore, DynamoDBHistoryStore
from tests.fakes.environments import stage_env
from tests.integration.conftest import LOCALSTACK_URL, skip_no_localstack


@pytest.mark.integration
@skip_no_localstack
class TestDynamoDBIntegration:
    @pytest.fixture
    def history(self, created_tables):
        return DynamoDBHistoryStore(table_suffix=created_tables, region="us-east-1", endpoint_url=LOCALSTACK_URL)

    @pytest.fixture
    def environments(self, created_tables):
        return DynamoDBEnvironmentStore(
            table_suffix=created_tables, region="us-east-1", endpoint_url=LOCALSTACK_URL,
        )

    def test_job_run_is_found_by_next_run(self, history):
        service = HistoryService(store=history, clock=SystemClock())
        env1 = f"blue-{uuid.uuid4().hex[:8]}"
        job = service.new_job_history_processing("GoLiveJob", env1, "green", "goLive", datetime.now(timezone.utc))
        task = service.new_task_history(job, 1, "FreezeTask", TaskStatus.PROCESSING)
        service.close_task_history(task, TaskStatus.DONE)
        service.close_job_history(job, JobStatus.ERROR)

        found = service.find_last_relevant_job_history("GoLiveJob", env1, "green", timedelta(days=1))
        assert found.id == job.id
        assert found.status == JobStatus.ERROR
        assert [(t.position, t.status) for t in found.task_histories] == [(1, TaskStatus.DONE)]

    def test_environment_round_trip(self, environments):
        env_name = f"green-{uuid.uuid4().hex[:8]}"
        environments.save(stage_env(env_name))
        assert environments.get(env_name).application_vms[0].hostname == "app-green-01"
        environments.delete(env_name)
        assert environments.find(env_name) is None
