"""Create the bluegreen DynamoDB tables and optionally register environments.

Usage:
    python scripts/create_tables.py --endpoint-url http://localhost:4566
    python scripts/create_tables.py --environments envs.json --table-suffix -dev
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

import boto3

from bluegreen.models.environment import Environment
from bluegreen.persistence.dynamodb_backend import (
    ENVIRONMENT_TABLE,
    JOB_HISTORY_TABLE,
    TASK_HISTORY_TABLE,
    DynamoDBEnvironmentStore,
)

TABLE_DEFINITIONS: list[dict[str, Any]] = [
    {"name": JOB_HISTORY_TABLE},
    {"name": TASK_HISTORY_TABLE},
    {"name": ENVIRONMENT_TABLE},
]


def create_tables(ddb: Any, suffix: str = "") -> list[str]:
    """Create all bluegreen tables. Skips tables that already exist; returns the ones created."""
    client = ddb.meta.client
    existing = client.list_tables().get("TableNames", [])
    created: list[str] = []

    for defn in TABLE_DEFINITIONS:
        table_name = f"{defn['name']}{suffix}"
        if table_name in existing:
            print(f"  Table {table_name} already exists, skipping")
            continue
        client.create_table(
            TableName=table_name,
            KeySchema=[
                {"AttributeName": "PK", "KeyType": "HASH"},
                {"AttributeName": "SK", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "PK", "AttributeType": "S"},
                {"AttributeName": "SK", "AttributeType": "S"},
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        created.append(table_name)
        print(f"  Created table {table_name}")
    return created


def load_environments(path: Path) -> list[Environment]:
    """Read a JSON list of environments, validating each one."""
    data = json.loads(path.read_text())
    return [Environment.model_validate(item) for item in data]


def register_environments(store: DynamoDBEnvironmentStore, environments: list[Environment]) -> None:
    for environment in environments:
        store.save(environment)
        print(f"  Registered environment {environment.env_name}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Create DynamoDB tables for the bluegreen manager")
    parser.add_argument("--endpoint-url", default=None, help="DynamoDB endpoint (e.g. http://localhost:4566)")
    parser.add_argument("--table-suffix", default="", help="Table name suffix (e.g. -dev)")
    parser.add_argument("--region", default="us-east-1", help="AWS region")
    parser.add_argument("--environments", type=Path, default=None,
                        help="JSON file with a list of environments to register")
    args = parser.parse_args()

    kwargs: dict[str, Any] = {"region_name": args.region}
    if args.endpoint_url:
        kwargs["endpoint_url"] = args.endpoint_url

    ddb = boto3.resource("dynamodb", **kwargs)

    print("Creating tables...")
    create_tables(ddb, suffix=args.table_suffix)

    if args.environments:
        print("Registering environments...")
        store = DynamoDBEnvironmentStore(
            table_suffix=args.table_suffix, region=args.region, endpoint_url=args.endpoint_url,
        )
        register_environments(store, load_environments(args.environments))

    print("Done!")


if __name__ == "__main__":
    main()
