"""Health check endpoints."""

from __future__ import annotations

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends, HTTPException

from bluegreen.api.routes.deps import get_environment_store
from bluegreen.core.exceptions import BlueGreenError
from bluegreen.core.protocols import IEnvironmentStore

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
def ready(environment_store: IEnvironmentStore = Depends(get_environment_store)) -> dict:
    """Ready once the environment registry answers."""
    try:
        names = environment_store.list_names()
    except (BotoCoreError, ClientError, BlueGreenError) as exc:
        raise HTTPException(status_code=503, detail=f"Environment registry unavailable: {exc}") from exc
    return {"status": "ready", "environments": len(names)}
