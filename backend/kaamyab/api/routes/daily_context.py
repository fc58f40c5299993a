"""Today view and streak API routes."""
from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from kaamyab.api.schemas.daily_context import (
    DailyContextRequest,
    DailyContextResponse,
    StreakCompletionRequest,
    StreakResponse,
    StreakState,
    TaskExplanationResponse,
)
from kaamyab.api.schemas.plan_history import parse_plan_snapshot
from kaamyab.core.config import settings
from kaamyab.core.context import request_id_from
from kaamyab.db.deps import get_db
from kaamyab.observability.metrics import log_metric
from kaamyab.observability.tracing import trace
from kaamyab.services.daily_context import compute_daily_context, generate_fallback_explanation
from kaamyab.services.repositories import StreakRepository
from kaamyab.services.streak_tracker import (
    get_current_streak,
    has_completed_today,
    record_task_completion,
)
from kaamyab.services.timestamps import resolve_timezone

router = APIRouter()


def _today():
    tz = resolve_timezone(settings.analytics_timezone)
    return datetime.now(timezone.utc).astimezone(tz).date()


def _streak_response(user_id: UUID, state: StreakState, request_id: str | None) -> StreakResponse:
    return StreakResponse(
        user_id=user_id,
        count=state.count,
        last_completion_date=state.last_completion_date,
        completed_today=has_completed_today(state, _today()),
        request_id=request_id or "",
    )


@router.post("/daily-context", response_model=DailyContextResponse, tags=["today"])
def post_daily_context(
    http_request: Request,
    payload: DailyContextRequest,
    db: Session = Depends(get_db),
) -> DailyContextResponse:
    """Classify today from the active plan and the stored streak."""
    request_id = request_id_from(http_request)
    with trace("daily_context.compute", user_id=str(payload.user_id), request_id=request_id):
        streak = StreakRepository(db).get(payload.user_id)
        plan = parse_plan_snapshot(payload.plan) if payload.plan is not None else None
        context = compute_daily_context(
            plan,
            payload.today_task_count,
            payload.scheduled_tasks,
            streak,
            tz=resolve_timezone(settings.analytics_timezone),
        )

    log_metric("daily_context.day_type", 1, metadata={"day_type": context.day_type})
    return DailyContextResponse(user_id=payload.user_id, context=context, request_id=request_id or "")


@router.get("/daily-context/explanation", response_model=TaskExplanationResponse, tags=["today"])
def get_task_explanation(
    http_request: Request,
    title: str = Query(..., min_length=1, max_length=500),
) -> TaskExplanationResponse:
    request_id = request_id_from(http_request)
    return TaskExplanationResponse(
        title=title,
        explanation=generate_fallback_explanation(title),
        request_id=request_id or "",
    )


@router.get("/streaks", response_model=StreakResponse, tags=["today"])
def get_streak(
    http_request: Request,
    user_id: UUID = Query(...),
    db: Session = Depends(get_db),
) -> StreakResponse:
    """Current streak; a streak broken by a missed day is reset and stored."""
    request_id = request_id_from(http_request)
    repo = StreakRepository(db)
    with trace("streaks.get", user_id=str(user_id), request_id=request_id):
        stored = repo.get(user_id)
        current = get_current_streak(stored, _today())
        if current != stored:
            repo.save(user_id, current)
    return _streak_response(user_id, current, request_id)


@router.post("/streaks/completion", response_model=StreakResponse, tags=["today"])
def post_streak_completion(
    http_request: Request,
    payload: StreakCompletionRequest,
    db: Session = Depends(get_db),
) -> StreakResponse:
    request_id = request_id_from(http_request)
    repo = StreakRepository(db)
    with trace("streaks.completion", user_id=str(payload.user_id), request_id=request_id):
        updated = record_task_completion(repo.get(payload.user_id), _today())
        repo.save(payload.user_id, updated)

    log_metric("streaks.count", updated.count, metadata={"user_id": str(payload.user_id)})
    return _streak_response(payload.user_id, updated, request_id)
