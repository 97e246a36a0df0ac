"""Read-only job history endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from bluegreen.api.routes.deps import get_history_store
from bluegreen.core.protocols import IHistoryStore
from bluegreen.jobs.factory import JOB_DEFINITIONS

router = APIRouter(tags=["jobs"])


@router.get("")
async def list_jobs() -> dict:
    """Job names the manager can run, with their required parameters."""
    return {
        "jobs": [
            {"job_name": name, "description": d.description, "params": list(d.params),
             "optional_params": list(d.optional_params)}
            for name, d in JOB_DEFINITIONS.items()
        ]
    }


@router.get("/{job_name}/history")
def job_history(
    job_name: str,
    env1: Optional[str] = None,
    env2: Optional[str] = None,
    limit: int = Query(default=20, ge=1, le=100),
    history_store: IHistoryStore = Depends(get_history_store),
) -> dict:
    """Most recent runs of a job on the given environments, newest first."""
    definition = JOB_DEFINITIONS.get(job_name)
    if definition is None:
        raise HTTPException(status_code=404, detail=f"Unknown job name '{job_name}'")
    histories = history_store.list_job_histories(definition.job_class.__name__, env1, env2, limit)
    return {
        "job_name": job_name,
        "env1": env1,
        "env2": env2,
        "histories": [h.model_dump(mode="json") for h in histories],
    }
