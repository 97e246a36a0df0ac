"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from bluegreen.api.routes import health, jobs
from bluegreen.core.config import AppSettings
from bluegreen.core.logging_config import configure_logging
from bluegreen.persistence import create_persistence


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialize and tear down application resources."""
    settings = AppSettings()
    configure_logging(settings.log_level)
    history_store, environment_store = create_persistence(settings)
    app.state.settings = settings
    app.state.history_store = history_store
    app.state.environment_store = environment_store
    yield


def create_app() -> FastAPI:
    """Create the read-only job history api."""
    app = FastAPI(
        title="Bluegreen Environment Manager",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(health.router)
    app.include_router(jobs.router, prefix="/jobs")
    return app
