"""Unit tests for the DynamoDB history and environment stores using moto."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws

from bluegreen.core.exceptions import EnvironmentNotFoundError, ExternalServiceError
from bluegreen.models.history import JobHistory, JobStatus, TaskHistory, TaskStatus
from bluegreen.persistence.dynamodb_backend import (
    ENVIRONMENT_TABLE,
    JOB_HISTORY_TABLE,
    TASK_HISTORY_TABLE,
    DynamoDBEnvironmentStore,
    DynamoDBHistoryStore,
    job_history_pk,
    task_history_sk,
)
from tests.fakes import FixedClock
from tests.fakes.clients import T0
from tests.fakes.environments import live_env, stage_env

TABLE_SUFFIX = "-test"
REGION = "us-east-1"

# ---------- helpers ----------

def _create_table(client, name: str, pk: str = "PK", sk: str = "SK"):
    """Create a DynamoDB table with PK/SK key schema."""
    client.create_table(
        TableName=name,
        KeySchema=[
            {"AttributeName": pk, "KeyType": "HASH"},
            {"AttributeName": sk, "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": pk, "AttributeType": "S"},
            {"AttributeName": sk, "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )


def _job(start_offset_min: int = 0, env2: str | None = "green") -> JobHistory:
    return JobHistory(job_name="GoLiveJob", env1="blue", env2=env2, command_line="goLive --oldLiveEnv blue",
                      start_time=T0 + timedelta(minutes=start_offset_min))


# ---------- fixtures ----------

@pytest.fixture
def aws():
    with mock_aws():
        ddb = boto3.resource("dynamodb", region_name=REGION)
        client = boto3.client("dynamodb", region_name=REGION)
        for name in (JOB_HISTORY_TABLE, TASK_HISTORY_TABLE, ENVIRONMENT_TABLE):
            _create_table(client, f"{name}{TABLE_SUFFIX}")
        yield ddb


@pytest.fixture
def clock():
    return FixedClock(start=T0 + timedelta(hours=1))


@pytest.fixture
def history(aws, clock):
    return DynamoDBHistoryStore(table_suffix=TABLE_SUFFIX, region=REGION, clock=clock)


@pytest.fixture
def environments(aws):
    return DynamoDBEnvironmentStore(table_suffix=TABLE_SUFFIX, region=REGION)


# ---------- keys ----------

class TestKeys:
    def test_job_pk_uses_placeholder_for_missing_env(self):
        assert job_history_pk("TeardownCommitJob", "blue", None) == "JOB#TeardownCommitJob#blue#-"

    def test_task_sk_sorts_numerically(self):
        assert task_history_sk(2) < task_history_sk(10)


# ---------- job history ----------

class TestJobHistory:
    def test_insert_assigns_id_and_reloads(self, history):
        job = history.insert_job_history(_job())
        assert len(job.id) == 32
        reloaded = history.reload_job_history(job)
        assert reloaded.job_name == "GoLiveJob"
        assert reloaded.start_time == T0
        assert reloaded.status == JobStatus.PROCESSING
        assert reloaded.end_time is None

    def test_update_overwrites(self, history):
        job = history.insert_job_history(_job())
        job.status = JobStatus.DONE
        job.end_time = T0 + timedelta(minutes=3)
        history.update_job_history(job)
        reloaded = history.reload_job_history(job)
        assert reloaded.status == JobStatus.DONE
        assert reloaded.end_time == T0 + timedelta(minutes=3)

    def test_reload_missing_raises(self, history):
        with pytest.raises(ExternalServiceError, match="not found"):
            history.reload_job_history(_job().model_copy(update={"id": "missing"}))

    def test_find_last_relevant_returns_newest(self, history):
        history.insert_job_history(_job(0))
        newest = history.insert_job_history(_job(10))
        history.insert_job_history(_job(20, env2="red"))
        found = history.find_last_relevant_job_history("GoLiveJob", "blue", "green", timedelta(days=1))
        assert found.id == newest.id

    def test_find_last_relevant_respects_max_age(self, history):
        history.insert_job_history(_job(0))
        assert history.find_last_relevant_job_history("GoLiveJob", "blue", "green", timedelta(minutes=30)) is None

    def test_list_newest_first(self, history):
        ids = [history.insert_job_history(_job(m)).id for m in (0, 5, 10)]
        listed = history.list_job_histories("GoLiveJob", "blue", "green", limit=2)
        assert [j.id for j in listed] == [ids[2], ids[1]]


# ---------- task history ----------

class TestTaskHistory:
    def test_tasks_load_in_position_order(self, history):
        job = history.insert_job_history(_job())
        for position in (2, 1, 10):
            history.insert_task_history(TaskHistory(
                job_history_id=job.id, position=position, task_name=f"Task{position}", start_time=T0,
            ))
        reloaded = history.reload_job_history(job)
        assert [t.position for t in reloaded.task_histories] == [1, 2, 10]
        assert all(t.status == TaskStatus.PROCESSING for t in reloaded.task_histories)

    def test_update_task(self, history):
        job = history.insert_job_history(_job())
        task = history.insert_task_history(TaskHistory(job_history_id=job.id, position=1,
                                                       task_name="FreezeTask", start_time=T0))
        task.status = TaskStatus.DONE
        task.end_time = T0 + timedelta(seconds=42)
        history.update_task_history(task)
        [reloaded] = history.reload_job_history(job).task_histories
        assert reloaded.status == TaskStatus.DONE
        assert reloaded.end_time == T0 + timedelta(seconds=42)


# ---------- environments ----------

class TestEnvironmentStore:
    def test_save_and_get(self, environments):
        environments.save(stage_env("green"))
        loaded = environments.get("green")
        physical = loaded.logical_databases[0].physical_database
        assert physical.instance_name == "orders-stage"
        assert physical.source_snapshot_id == "bluegreen9blue9orders9orders-live"
        assert loaded.application_vms[0].applications[0].port == 8080

    def test_get_missing_raises(self, environments):
        with pytest.raises(EnvironmentNotFoundError):
            environments.get("nope")
        assert environments.find("nope") is None

    def test_list_and_delete(self, environments):
        environments.save(live_env("blue"))
        environments.save(stage_env("green"))
        assert environments.list_names() == ["blue", "green"]
        environments.delete("green")
        assert environments.list_names() == ["blue"]

    def test_missing_table_raises_service_error(self, aws):
        store = DynamoDBEnvironmentStore(table_suffix="-missing", region=REGION)
        with pytest.raises(ExternalServiceError):
            store.find("blue")


class TestPagination:
    def test_list_names_follows_last_evaluated_key(self, environments):
        table = MagicMock()
        table.scan.side_effect = [
            {"Items": [{"envName": "green"}], "LastEvaluatedKey": {"PK": "ENV#green", "SK": "ENV"}},
            {"Items": [{"envName": "blue"}]},
        ]
        environments._table = lambda base: table
        assert environments.list_names() == ["blue", "green"]
        assert table.scan.call_count == 2
        assert table.scan.call_args.kwargs["ExclusiveStartKey"] == {"PK": "ENV#green", "SK": "ENV"}

    def test_collect_pages_stops_at_limit(self):
        operation = MagicMock(side_effect=[
            {"Items": [{"n": 1}, {"n": 2}], "LastEvaluatedKey": {"PK": "x"}},
            {"Items": [{"n": 3}]},
        ])
        items = DynamoDBHistoryStore._collect_pages(operation, limit=2, Limit=2)
        assert items == [{"n": 1}, {"n": 2}]
        operation.assert_called_once_with(Limit=2)

    def test_task_histories_span_pages(self, history):
        job = history.insert_job_history(_job())
        for position in (1, 2, 3):
            history.insert_task_history(TaskHistory(job_history_id=job.id, position=position, task_name=f"T{position}",
                                                    start_time=T0, status=TaskStatus.DONE))
        real_table = history._table
        pages = []

        def paged_table(base):
            table = real_table(base)
            if base != TASK_HISTORY_TABLE:
                return table
            wrapper = MagicMock()

            def query(**kwargs):
                resp = table.query(Limit=1, **kwargs)
                pages.append(resp)
                return resp

            wrapper.query.side_effect = query
            return wrapper

        history._table = paged_table
        loaded = history.reload_job_history(job)
        assert [t.position for t in loaded.task_histories] == [1, 2, 3]
        assert len(pages) >= 3
