"""Tests for the table creation and environment registration script."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import boto3
import pytest
from moto import mock_aws

# Make scripts/ importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent / "scripts"))

from create_tables import create_tables, load_environments, register_environments  # noqa: E402

from bluegreen.persistence.dynamodb_backend import DynamoDBEnvironmentStore  # noqa: E402
from tests.fakes.environments import live_env, stage_env  # noqa: E402

EXAMPLE_ENVIRONMENTS = Path(__file__).resolve().parent.parent.parent / "scripts" / "environments.example.json"


@pytest.fixture
def ddb():
    with mock_aws():
        yield boto3.resource("dynamodb", region_name="us-east-1")


class TestCreateTables:
    def test_creates_all_three_tables(self, ddb):
        created = create_tables(ddb, suffix="-test")
        client = boto3.client("dynamodb", region_name="us-east-1")
        tables = client.list_tables()["TableNames"]
        assert sorted(created) == sorted(tables)
        assert len(tables) == 3
        assert "bluegreen-job-history-test" in tables

    def test_idempotent_skips_existing(self, ddb):
        create_tables(ddb, suffix="-test")
        assert create_tables(ddb, suffix="-test") == []
        client = boto3.client("dynamodb", region_name="us-east-1")
        assert len(client.list_tables()["TableNames"]) == 3


class TestRegisterEnvironments:
    def test_round_trip_through_json(self, ddb, tmp_path):
        path = tmp_path / "envs.json"
        path.write_text(json.dumps([live_env("blue").model_dump(mode="json"),
                                    stage_env("green").model_dump(mode="json")]))
        create_tables(ddb, suffix="-test")
        store = DynamoDBEnvironmentStore(table_suffix="-test", region="us-east-1")
        register_environments(store, load_environments(path))
        assert store.list_names() == ["blue", "green"]
        assert store.get("blue").application_vms[0].ip_address == "10.0.0.11"

    def test_example_file_is_valid(self):
        environments = load_environments(EXAMPLE_ENVIRONMENTS)
        assert [e.env_name for e in environments] == ["blue"]
        assert environments[0].logical_databases[0].physical_database.live is True
