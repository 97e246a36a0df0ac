"""Tests for deleting a torn-down environment's RDS database."""

from __future__ import annotations

import pytest

from bluegreen.core.config import WaiterParameters
from bluegreen.core.exceptions import ConfigurationError, RdsInstanceNotFoundError
from bluegreen.models.history import TaskStatus
from bluegreen.tasks.rds_instance_delete import RdsInstanceDeleteTask
from tests.fakes import FakeRdsClient, MemoryEnvironmentStore, RecordingSleeper
from tests.fakes.clients import rds_instance, rds_snapshot
from tests.fakes.environments import live_env, make_env, stage_env

PARAMS = WaiterParameters(initial_wait_delay_ms=1, followup_wait_delay_ms=1,
                          wait_report_interval=5, max_num_waits=3)
SNAPSHOT_ID = "bluegreen9blue9orders9orders-live"


def _rds() -> FakeRdsClient:
    rds = FakeRdsClient()
    rds.instances["orders-stage"] = [
        rds_instance("orders-stage", "available", param_group=("orders-stage-params", "in-sync")),
        rds_instance("orders-stage", "deleting"),
        RdsInstanceNotFoundError("DBInstance orders-stage not found"),
    ]
    rds.snapshots[SNAPSHOT_ID] = [rds_snapshot(SNAPSHOT_ID, "deleting"), rds_snapshot(SNAPSHOT_ID, "deleted")]
    return rds


def _task(store, rds, delete_env="green", live="blue"):
    return RdsInstanceDeleteTask(2, delete_env, live, environment_store=store, rds_client=rds,
                                 waiter_parameters=PARAMS, sleeper=RecordingSleeper())


class TestRdsInstanceDeleteTask:
    def test_deletes_instance_param_group_and_snapshot(self):
        rds = _rds()
        store = MemoryEnvironmentStore([live_env("blue"), stage_env("green")])
        assert _task(store, rds).process(noop=False) == TaskStatus.DONE
        assert rds.called("delete_instance") == [("delete_instance", "orders-stage")]
        assert rds.called("delete_parameter_group") == [("delete_parameter_group", "orders-stage-params")]
        assert rds.called("delete_snapshot") == [("delete_snapshot", SNAPSHOT_ID)]

    def test_snapshot_id_derived_from_live_env_when_not_recorded(self):
        rds = _rds()
        stage = make_env("green", "orders-stage", live=False)
        store = MemoryEnvironmentStore([live_env("blue"), stage])
        assert _task(store, rds).process(noop=False) == TaskStatus.DONE
        assert rds.called("delete_snapshot") == [("delete_snapshot", SNAPSHOT_ID)]

    def test_missing_snapshot_is_tolerated(self):
        rds = _rds()
        del rds.snapshots[SNAPSHOT_ID]
        store = MemoryEnvironmentStore([live_env("blue"), stage_env("green")])
        assert _task(store, rds).process(noop=False) == TaskStatus.DONE

    def test_no_self_named_param_group(self):
        rds = _rds()
        rds.instances["orders-stage"][0] = rds_instance("orders-stage", "available",
                                                        param_group=("default.mysql8.0", "in-sync"))
        store = MemoryEnvironmentStore([live_env("blue"), stage_env("green")])
        _task(store, rds).process(noop=False)
        assert rds.called("delete_parameter_group") == []

    def test_refuses_live_database(self):
        store = MemoryEnvironmentStore([live_env("blue")])
        with pytest.raises(ConfigurationError, match="LIVE"):
            _task(store, FakeRdsClient(), delete_env="blue").process(noop=True)

    def test_noop_only_describes(self):
        rds = _rds()
        store = MemoryEnvironmentStore([live_env("blue"), stage_env("green")])
        assert _task(store, rds).process(noop=True) == TaskStatus.NOOP
        assert [c[0] for c in rds.calls] == ["describe_instance"]
