"""Plan archive and effort feedback API routes."""
from __future__ import annotations

from time import perf_counter
from typing import Any, Dict
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from kaamyab.api.schemas.plan_history import (
    EffortFeedbackRequest,
    EffortFeedbackResponse,
    PlanHistoryCreateRequest,
    PlanHistoryCreateResponse,
    PlanHistoryItem,
    PlanHistoryListResponse,
)
from kaamyab.core.context import request_id_from
from kaamyab.db.deps import get_db
from kaamyab.observability.metrics import log_metric
from kaamyab.observability.tracing import trace
from kaamyab.services.execution_analytics import task_key
from kaamyab.services.repositories import EffortFeedbackRepository, HistoryRepository

router = APIRouter()


def _to_item(row) -> PlanHistoryItem:
    return PlanHistoryItem(
        id=row.id,
        total_tasks=row.total_tasks,
        completed_tasks=row.completed_tasks,
        total_weeks=row.total_weeks,
        is_strategic=row.is_strategic,
        completed_at=row.completed_at,
    )


@router.post(
    "/plan-history",
    response_model=PlanHistoryCreateResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["plan-history"],
)
def archive_plan(
    http_request: Request,
    payload: PlanHistoryCreateRequest,
    db: Session = Depends(get_db),
) -> PlanHistoryCreateResponse:
    """Archive a finished plan so it feeds the operating style analysis."""
    request_id = request_id_from(http_request)
    metadata: Dict[str, Any] = {
        "route": "/plan-history",
        "user_id": str(payload.user_id),
        "request_id": request_id,
    }
    start = perf_counter()
    with trace("plan_history.create", metadata=metadata, user_id=str(payload.user_id), request_id=request_id):
        row = HistoryRepository(db).add(
            payload.user_id,
            payload.plan_snapshot,
            is_strategic=payload.is_strategic,
            completed_at=payload.completed_at,
        )

    log_metric("plan_history.create.success", 1, metadata={"user_id": str(payload.user_id)})
    log_metric("plan_history.create.latency_ms", (perf_counter() - start) * 1000)
    return PlanHistoryCreateResponse(plan=_to_item(row), request_id=request_id or "")


@router.get("/plan-history", response_model=PlanHistoryListResponse, tags=["plan-history"])
def list_plan_history(
    http_request: Request,
    user_id: UUID = Query(..., description="User whose archived plans to list"),
    db: Session = Depends(get_db),
) -> PlanHistoryListResponse:
    request_id = request_id_from(http_request)
    with trace(
        "plan_history.list",
        metadata={"route": "/plan-history", "user_id": str(user_id)},
        user_id=str(user_id),
        request_id=request_id,
    ):
        rows = HistoryRepository(db).list_rows(user_id)

    log_metric("plan_history.list.count", len(rows), metadata={"user_id": str(user_id)})
    return PlanHistoryListResponse(
        user_id=user_id,
        plans=[_to_item(row) for row in rows],
        request_id=request_id or "",
    )


@router.post("/effort-feedback", response_model=EffortFeedbackResponse, tags=["plan-history"])
def record_effort_feedback(
    http_request: Request,
    payload: EffortFeedbackRequest,
    db: Session = Depends(get_db),
) -> EffortFeedbackResponse:
    """Store how a completed task felt; re-recording the same task replaces it."""
    request_id = request_id_from(http_request)
    key = task_key(payload.week_index, payload.task_index)
    with trace(
        "effort_feedback.record",
        metadata={"task_id": key, "effort": payload.effort},
        user_id=str(payload.user_id),
        request_id=request_id,
    ):
        row = EffortFeedbackRepository(db).record(payload.user_id, key, payload.effort)

    log_metric("effort_feedback.recorded", 1, metadata={"effort": payload.effort})
    return EffortFeedbackResponse(
        task_id=row.task_key,
        effort=row.effort,
        recorded_at=row.recorded_at,
        request_id=request_id or "",
    )
