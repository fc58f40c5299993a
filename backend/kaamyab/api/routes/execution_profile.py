"""Personal execution profile API routes."""
from __future__ import annotations

from time import perf_counter
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from kaamyab.api.schemas.execution_profile import (
    ExecutionObservationRequest,
    ExecutionObservationResponse,
    ExecutionProfileResponse,
    PlanningHintResponse,
)
from kaamyab.core.context import request_id_from
from kaamyab.db.deps import get_db
from kaamyab.observability.metrics import log_metric
from kaamyab.observability.tracing import trace
from kaamyab.services.execution_profile import (
    generate_calibration_insights,
    generate_planning_hints,
)
from kaamyab.services.profile_service import record_plan_execution
from kaamyab.services.repositories import ProfileRepository

router = APIRouter()


@router.get("/execution-profile", response_model=ExecutionProfileResponse, tags=["execution-profile"])
def get_execution_profile(
    http_request: Request,
    user_id: UUID = Query(...),
    db: Session = Depends(get_db),
) -> ExecutionProfileResponse:
    request_id = request_id_from(http_request)
    with trace("execution_profile.get", user_id=str(user_id), request_id=request_id):
        profile = ProfileRepository(db).get_execution_profile(user_id)
        insights = generate_calibration_insights(profile) if profile else []

    return ExecutionProfileResponse(
        user_id=user_id,
        profile=profile,
        insights=insights,
        request_id=request_id or "",
    )


@router.post(
    "/execution-profile/observations",
    response_model=ExecutionObservationResponse,
    tags=["execution-profile"],
)
def post_execution_observation(
    http_request: Request,
    payload: ExecutionObservationRequest,
    db: Session = Depends(get_db),
) -> ExecutionObservationResponse:
    """Fold a finished plan into the profile and report what moved."""
    request_id = request_id_from(http_request)
    start = perf_counter()
    with trace(
        "execution_profile.observe",
        metadata={"is_strategic": payload.is_strategic},
        user_id=str(payload.user_id),
        request_id=request_id,
    ):
        update = record_plan_execution(
            db,
            payload.user_id,
            payload.plan_data,
            is_strategic=payload.is_strategic,
        )

    log_metric(
        "execution_profile.observe.latency_ms",
        (perf_counter() - start) * 1000,
        metadata={"confidence": update.profile.confidence_level},
    )
    log_metric("execution_profile.data_points", update.profile.data_points_count)
    return ExecutionObservationResponse(
        user_id=payload.user_id,
        profile=update.profile,
        previous_profile=update.previous,
        changes=update.changes,
        insights=update.insights,
        plan_summary=update.summary,
        request_id=request_id or "",
    )


@router.get("/execution-profile/hint", response_model=PlanningHintResponse, tags=["execution-profile"])
def get_planning_hint(
    http_request: Request,
    user_id: UUID = Query(...),
    step: Literal["project", "deadline", "strategic", "general"] = Query("project"),
    db: Session = Depends(get_db),
) -> PlanningHintResponse:
    request_id = request_id_from(http_request)
    with trace("execution_profile.hint", metadata={"step": step}, user_id=str(user_id), request_id=request_id):
        profile = ProfileRepository(db).get_execution_profile(user_id)
        hint = generate_planning_hints(profile, step)
    return PlanningHintResponse(user_id=user_id, hint=hint, request_id=request_id or "")
