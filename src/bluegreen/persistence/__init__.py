"""Pluggable persistence backends behind Protocol interfaces."""

from __future__ import annotations

from bluegreen.core.config import AppSettings
from bluegreen.persistence.dynamodb_backend import DynamoDBEnvironmentStore, DynamoDBHistoryStore


def create_persistence(settings: AppSettings | None = None):
    """Create wired-up persistence backends from application settings.

    Returns:
        Tuple of (history_store, environment_store).
    """
    if settings is None:
        settings = AppSettings()

    history_store = DynamoDBHistoryStore(
        table_suffix=settings.dynamodb.table_suffix,
        region=settings.dynamodb.region,
        endpoint_url=settings.dynamodb.endpoint_url,
    )

    environment_store = DynamoDBEnvironmentStore(
        table_suffix=settings.dynamodb.table_suffix,
        region=settings.dynamodb.region,
        endpoint_url=settings.dynamodb.endpoint_url,
    )

    return history_store, environment_store
