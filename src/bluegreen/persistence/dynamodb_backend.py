"""DynamoDB backends for job history and the environment registry."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable

import boto3
from botocore.exceptions import ClientError

from bluegreen.core.clock import SystemClock
from bluegreen.core.exceptions import EnvironmentNotFoundError, ExternalServiceError
from bluegreen.core.protocols import IClock
from bluegreen.models.environment import Environment
from bluegreen.models.history import JobHistory, JobStatus, TaskHistory, TaskStatus

JOB_HISTORY_TABLE = "bluegreen-job-history"
TASK_HISTORY_TABLE = "bluegreen-task-history"
ENVIRONMENT_TABLE = "bluegreen-environment"

_NO_ENV = "-"


def _decode_decimals(item: dict[str, Any]) -> dict[str, Any]:
    """Convert Decimal values in a DynamoDB item to int/float."""
    out: dict[str, Any] = {}
    for k, v in item.items():
        if isinstance(v, Decimal):
            out[k] = int(v) if v == int(v) else float(v)
        elif isinstance(v, dict):
            out[k] = _decode_decimals(v)
        elif isinstance(v, list):
            out[k] = [
                _decode_decimals(i) if isinstance(i, dict)
                else (int(i) if isinstance(i, Decimal) and i == int(i) else float(i) if isinstance(i, Decimal) else i)
                for i in v
            ]
        else:
            out[k] = v
    return out


def _ts(value: datetime | None) -> str | None:
    """Fixed-width UTC ISO timestamp, so sort keys order chronologically."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def job_history_pk(job_name: str, env1: str | None, env2: str | None) -> str:
    return f"JOB#{job_name}#{env1 or _NO_ENV}#{env2 or _NO_ENV}"


def job_history_sk(job_history: JobHistory) -> str:
    return f"START#{_ts(job_history.start_time)}#{job_history.id}"


def task_history_pk(job_history_id: str) -> str:
    return f"JOBHIST#{job_history_id}"


def task_history_sk(position: int) -> str:
    return f"TASK#{position:04d}"


class _DynamoDBBase:
    def __init__(self, table_suffix: str = "", region: str = "us-east-1",
                 endpoint_url: str | None = None) -> None:
        self._table_suffix = table_suffix
        self._region = region
        self._endpoint_url = endpoint_url
        kwargs: dict = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        self._ddb = boto3.resource("dynamodb", **kwargs)

    def _table(self, base: str):
        return self._ddb.Table(f"{base}{self._table_suffix}")

    @staticmethod
    def _collect_pages(operation: Callable[..., dict[str, Any]], limit: int | None = None,
                       **kwargs: Any) -> list[dict[str, Any]]:
        """Follow ``LastEvaluatedKey`` until the results end or ``limit`` items are in hand."""
        items: list[dict[str, Any]] = []
        while True:
            resp = operation(**kwargs)
            items.extend(resp.get("Items", []))
            last_key = resp.get("LastEvaluatedKey")
            if last_key is None or (limit is not None and len(items) >= limit):
                break
            kwargs["ExclusiveStartKey"] = last_key
        return items[:limit] if limit is not None else items


class DynamoDBHistoryStore(_DynamoDBBase):
    """Production IHistoryStore backed by two DynamoDB tables.

    Job histories are partitioned by (job name, env1, env2) and sorted by
    start time; task histories are partitioned by job history id and sorted
    by task position.
    """

    def __init__(self, table_suffix: str = "", region: str = "us-east-1",
                 endpoint_url: str | None = None, clock: IClock | None = None) -> None:
        super().__init__(table_suffix, region, endpoint_url)
        self._clock = clock or SystemClock()

    # ---- item mapping ----

    @staticmethod
    def _job_item(job_history: JobHistory) -> dict[str, Any]:
        return {
            "PK": job_history_pk(job_history.job_name, job_history.env1, job_history.env2),
            "SK": job_history_sk(job_history),
            "id": job_history.id,
            "jobName": job_history.job_name,
            "env1": job_history.env1,
            "env2": job_history.env2,
            "commandLine": job_history.command_line,
            "startTime": _ts(job_history.start_time),
            "endTime": _ts(job_history.end_time),
            "status": str(job_history.status),
        }

    @staticmethod
    def _job_from_item(item: dict[str, Any]) -> JobHistory:
        return JobHistory(
            id=item["id"],
            job_name=item["jobName"],
            env1=item.get("env1"),
            env2=item.get("env2"),
            command_line=item.get("commandLine") or "",
            start_time=_parse_ts(item["startTime"]),
            end_time=_parse_ts(item.get("endTime")),
            status=JobStatus(item["status"]),
        )

    @staticmethod
    def _task_item(task_history: TaskHistory) -> dict[str, Any]:
        return {
            "PK": task_history_pk(task_history.job_history_id),
            "SK": task_history_sk(task_history.position),
            "id": task_history.id,
            "jobHistoryId": task_history.job_history_id,
            "position": task_history.position,
            "taskName": task_history.task_name,
            "startTime": _ts(task_history.start_time),
            "endTime": _ts(task_history.end_time),
            "status": str(task_history.status),
        }

    @staticmethod
    def _task_from_item(item: dict[str, Any]) -> TaskHistory:
        return TaskHistory(
            id=item["id"],
            job_history_id=item["jobHistoryId"],
            position=item["position"],
            task_name=item["taskName"],
            start_time=_parse_ts(item["startTime"]),
            end_time=_parse_ts(item.get("endTime")),
            status=TaskStatus(item["status"]),
        )

    # ---- IHistoryStore methods ----

    def insert_job_history(self, job_history: JobHistory) -> JobHistory:
        if not job_history.id:
            job_history.id = uuid.uuid4().hex
        self._put(JOB_HISTORY_TABLE, self._job_item(job_history))
        return job_history

    def update_job_history(self, job_history: JobHistory) -> None:
        self._put(JOB_HISTORY_TABLE, self._job_item(job_history))

    def reload_job_history(self, job_history: JobHistory) -> JobHistory:
        tbl = self._table(JOB_HISTORY_TABLE)
        try:
            resp = tbl.get_item(Key={
                "PK": job_history_pk(job_history.job_name, job_history.env1, job_history.env2),
                "SK": job_history_sk(job_history),
            })
        except ClientError as exc:
            raise ExternalServiceError(f"DynamoDB read failed for job history {job_history.id!r}: {exc}") from exc
        item = resp.get("Item")
        if item is None:
            raise ExternalServiceError(f"Job history {job_history.id!r} not found")
        return self._with_tasks(self._job_from_item(_decode_decimals(item)))

    def find_last_relevant_job_history(
        self, job_name: str, env1: str | None, env2: str | None, max_age: timedelta
    ) -> JobHistory | None:
        oldest = self._clock.now() - max_age
        items = self._query_jobs(
            "PK = :pk AND SK > :oldest",
            {":pk": job_history_pk(job_name, env1, env2), ":oldest": f"START#{_ts(oldest)}"},
            limit=1,
        )
        if not items:
            return None
        return self._with_tasks(self._job_from_item(items[0]))

    def list_job_histories(
        self, job_name: str, env1: str | None, env2: str | None, limit: int = 20
    ) -> list[JobHistory]:
        items = self._query_jobs("PK = :pk", {":pk": job_history_pk(job_name, env1, env2)}, limit=limit)
        return [self._with_tasks(self._job_from_item(item)) for item in items]

    def insert_task_history(self, task_history: TaskHistory) -> TaskHistory:
        if not task_history.id:
            task_history.id = uuid.uuid4().hex
        self._put(TASK_HISTORY_TABLE, self._task_item(task_history))
        return task_history

    def update_task_history(self, task_history: TaskHistory) -> None:
        self._put(TASK_HISTORY_TABLE, self._task_item(task_history))

    # ---- helpers ----

    def _put(self, table_base: str, item: dict[str, Any]) -> None:
        try:
            self._table(table_base).put_item(Item={k: v for k, v in item.items() if v is not None})
        except ClientError as exc:
            raise ExternalServiceError(f"DynamoDB write to {table_base!r} failed: {exc}") from exc

    def _query_jobs(self, condition: str, values: dict[str, Any], limit: int) -> list[dict[str, Any]]:
        tbl = self._table(JOB_HISTORY_TABLE)
        try:
            items = self._collect_pages(
                tbl.query,
                limit=limit,
                KeyConditionExpression=condition,
                ExpressionAttributeValues=values,
                ScanIndexForward=False,
                Limit=limit,
            )
        except ClientError as exc:
            raise ExternalServiceError(f"DynamoDB job history query failed: {exc}") from exc
        return [_decode_decimals(item) for item in items]

    def _with_tasks(self, job_history: JobHistory) -> JobHistory:
        tbl = self._table(TASK_HISTORY_TABLE)
        try:
            items = self._collect_pages(
                tbl.query,
                KeyConditionExpression="PK = :pk",
                ExpressionAttributeValues={":pk": task_history_pk(job_history.id)},
            )
        except ClientError as exc:
            raise ExternalServiceError(f"DynamoDB task history query failed: {exc}") from exc
        job_history.task_histories = [
            self._task_from_item(_decode_decimals(item)) for item in items
        ]
        return job_history


class DynamoDBEnvironmentStore(_DynamoDBBase):
    """Production IEnvironmentStore, one item per environment."""

    def get(self, env_name: str) -> Environment:
        environment = self.find(env_name)
        if environment is None:
            raise EnvironmentNotFoundError(env_name)
        return environment

    def find(self, env_name: str) -> Environment | None:
        try:
            resp = self._table(ENVIRONMENT_TABLE).get_item(Key={"PK": f"ENV#{env_name}", "SK": "ENV"})
        except ClientError as exc:
            raise ExternalServiceError(f"DynamoDB read failed for environment {env_name!r}: {exc}") from exc
        item = resp.get("Item")
        if item is None:
            return None
        return Environment.model_validate(_decode_decimals(item)["environment"])

    def list_names(self) -> list[str]:
        try:
            items = self._collect_pages(self._table(ENVIRONMENT_TABLE).scan, ProjectionExpression="envName")
        except ClientError as exc:
            raise ExternalServiceError(f"DynamoDB environment scan failed: {exc}") from exc
        return sorted(item["envName"] for item in items)

    def save(self, environment: Environment) -> None:
        item = {
            "PK": f"ENV#{environment.env_name}",
            "SK": "ENV",
            "envName": environment.env_name,
            "environment": environment.model_dump(mode="json", exclude_none=True),
        }
        try:
            self._table(ENVIRONMENT_TABLE).put_item(Item=item)
        except ClientError as exc:
            raise ExternalServiceError(f"DynamoDB write failed for environment {environment.env_name!r}: {exc}") from exc

    def delete(self, env_name: str) -> None:
        try:
            self._table(ENVIRONMENT_TABLE).delete_item(Key={"PK": f"ENV#{env_name}", "SK": "ENV"})
        except ClientError as exc:
            raise ExternalServiceError(f"DynamoDB delete failed for environment {env_name!r}: {exc}") from exc
