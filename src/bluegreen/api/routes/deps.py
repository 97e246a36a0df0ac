"""Request-scoped accessors for the stores created in the app lifespan."""

from __future__ import annotations

from fastapi import Request

from bluegreen.core.protocols import IEnvironmentStore, IHistoryStore


def get_history_store(request: Request) -> IHistoryStore:
    return request.app.state.history_store


def get_environment_store(request: Request) -> IEnvironmentStore:
    return request.app.state.environment_store
