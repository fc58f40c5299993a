"""Operational endpoints for scheduler jobs."""
from __future__ import annotations

from time import perf_counter

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from kaamyab.api.schemas.jobs import JobRunRequest, JobRunResponse
from kaamyab.core.config import settings
from kaamyab.core.context import request_id_from
from kaamyab.db.deps import get_db
from kaamyab.observability.metrics import log_metric
from kaamyab.observability.tracing import trace
from kaamyab.services.job_runner import (
    run_operating_style_for_all_users,
    run_operating_style_for_user,
)

router = APIRouter()


@router.get("/jobs", tags=["jobs"])
def get_jobs_config(request: Request) -> dict:
    request_id = request_id_from(request)
    with trace("jobs.config", metadata={"request_id": request_id}, request_id=request_id):
        data = {
            "scheduler_enabled": settings.scheduler_enabled,
            "schedule": {
                "timezone": settings.scheduler_timezone,
                "style_refresh_day": settings.style_refresh_day,
                "style_refresh_time": f"{settings.style_refresh_hour:02d}:{settings.style_refresh_minute:02d}",
            },
        }
    return {**data, "request_id": request_id or ""}


@router.post("/jobs/run-now", response_model=JobRunResponse, tags=["jobs"])
def run_job_now(
    request: Request,
    payload: JobRunRequest,
    db: Session = Depends(get_db),
) -> JobRunResponse:
    if not settings.debug:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Run-now only allowed in debug mode")

    request_id = request_id_from(request)
    metadata = {"job": payload.job, "request_id": request_id}
    start = perf_counter()
    with trace("jobs.run_now", metadata=metadata, request_id=request_id):
        if payload.user_id:
            regenerated = run_operating_style_for_user(db, payload.user_id)
            result = {
                "users_processed": 0 if regenerated is None else 1,
                "profiles_written": 1 if regenerated else 0,
                "skipped": 1 if regenerated is None else 0,
            }
        else:
            res = run_operating_style_for_all_users(db)
            result = {
                "users_processed": res.users_processed,
                "profiles_written": res.profiles_written,
                "skipped": res.skipped_for_insufficient_data,
            }

    latency_ms = (perf_counter() - start) * 1000
    log_metric("jobs.run_now.success", 1, metadata={"job": payload.job})
    log_metric("jobs.run_now.latency_ms", latency_ms, metadata={"job": payload.job})

    return JobRunResponse(job=payload.job, request_id=request_id or "", **result)
