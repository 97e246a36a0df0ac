"""Tests for the tasks that only edit the environment registry."""

from __future__ import annotations

import pytest

from bluegreen.core.exceptions import ConfigurationError, EnvironmentNotFoundError
from bluegreen.models.history import TaskStatus
from bluegreen.tasks.forget_environment import ForgetEnvironmentTask
from bluegreen.tasks.register_application import RegisterApplicationTask
from bluegreen.tasks.swap_databases import SwapDatabasesTask
from tests.fakes import MemoryEnvironmentStore
from tests.fakes.environments import live_env, make_env, make_vm, stage_env


class TestRegisterApplicationTask:
    def _store(self):
        stage = make_env("green", "orders-stage", live=False,
                         vm=make_vm("app-green-01", "10.0.0.21", with_application=False))
        return MemoryEnvironmentStore([live_env("blue"), stage])

    def test_copies_live_application_shape(self):
        store = self._store()
        task = RegisterApplicationTask(5, "blue", "green", environment_store=store)
        assert task.process(noop=False) == TaskStatus.DONE
        [application] = store.get("green").application_vms[0].applications
        assert application.hostname == "app-green-01"
        assert application.port == 8080
        assert application.url_path == "/app"

    def test_noop(self):
        store = self._store()
        assert RegisterApplicationTask(5, "blue", "green", environment_store=store).process(True) == TaskStatus.NOOP
        assert store.get("green").application_vms[0].applications == []

    def test_already_registered(self):
        store = MemoryEnvironmentStore([live_env("blue"), stage_env("green")])
        with pytest.raises(ConfigurationError, match="already has"):
            RegisterApplicationTask(5, "blue", "green", environment_store=store).process(False)


class TestSwapDatabasesTask:
    def test_swaps(self):
        store = MemoryEnvironmentStore([live_env("blue"), stage_env("green")])
        task = SwapDatabasesTask(3, "blue", "green", environment_store=store)
        assert task.process(noop=False) == TaskStatus.DONE
        blue_db = store.get("blue").logical_databases[0].physical_database
        green_db = store.get("green").logical_databases[0].physical_database
        assert (blue_db.instance_name, blue_db.live) == ("orders-stage", False)
        assert (green_db.instance_name, green_db.live) == ("orders-live", True)
        assert store.get("green").application_vms[0].hostname == "app-green-01"

    def test_noop(self):
        store = MemoryEnvironmentStore([live_env("blue"), stage_env("green")])
        assert SwapDatabasesTask(3, "blue", "green", environment_store=store).process(True) == TaskStatus.NOOP
        assert store.get("blue").logical_databases[0].physical_database.live is True

    def test_refuses_second_swap(self):
        store = MemoryEnvironmentStore([live_env("blue"), stage_env("green")])
        SwapDatabasesTask(3, "blue", "green", environment_store=store).process(False)
        with pytest.raises(ConfigurationError, match="initially live"):
            SwapDatabasesTask(3, "blue", "green", environment_store=store).process(False)

    def test_same_env(self):
        with pytest.raises(ConfigurationError):
            SwapDatabasesTask(3, "blue", "blue", environment_store=MemoryEnvironmentStore())


class TestForgetEnvironmentTask:
    def test_deletes(self):
        store = MemoryEnvironmentStore([stage_env("green")])
        assert ForgetEnvironmentTask(3, "green", environment_store=store).process(False) == TaskStatus.DONE
        assert store.list_names() == []

    def test_noop_keeps_env(self):
        store = MemoryEnvironmentStore([stage_env("green")])
        assert ForgetEnvironmentTask(3, "green", environment_store=store).process(True) == TaskStatus.NOOP
        assert store.list_names() == ["green"]

    def test_missing_env(self):
        with pytest.raises(EnvironmentNotFoundError):
            ForgetEnvironmentTask(3, "green", environment_store=MemoryEnvironmentStore()).process(False)
