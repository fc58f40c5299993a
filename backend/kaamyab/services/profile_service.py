"""Operating style and execution profile lifecycle on top of the repositories."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from kaamyab.api.schemas.execution_profile import (
    CalibrationInsight,
    PatternChange,
    PersonalExecutionProfile,
    PlanExecutionSummary,
)
from kaamyab.api.schemas.operating_style import OperatingStyleProfile
from kaamyab.api.schemas.plan_history import parse_plan_snapshot
from kaamyab.core.config import settings
from kaamyab.services.execution_analytics import (
    compile_execution_metrics,
    effort_history_by_task,
    summarize_execution,
)
from kaamyab.services.execution_profile import (
    append_snapshot_to_history,
    create_plan_cycle_snapshot,
    detect_pattern_changes,
    extract_profile_from_plan,
    generate_calibration_insights,
    merge_profile_updates,
)
from kaamyab.services.operating_style import (
    MIN_PLANS_FOR_PROFILE,
    create_operating_style_profile,
    should_regenerate_profile,
)
from kaamyab.services.repositories import (
    EffortFeedbackRepository,
    HistoryRepository,
    ProfileRepository,
)
from kaamyab.services.style_summary import request_style_summary
from kaamyab.services.timestamps import resolve_timezone

logger = logging.getLogger(__name__)


@dataclass
class OperatingStyleResult:
    profile: Optional[OperatingStyleProfile]
    plan_count: int
    regenerated: bool = False

    @property
    def has_enough_data(self) -> bool:
        return self.plan_count >= MIN_PLANS_FOR_PROFILE


@dataclass
class ExecutionUpdate:
    previous: Optional[PersonalExecutionProfile]
    profile: PersonalExecutionProfile
    changes: List[PatternChange] = field(default_factory=list)
    insights: List[CalibrationInsight] = field(default_factory=list)
    summary: PlanExecutionSummary = field(default_factory=PlanExecutionSummary)


def _build_style_profile(
    db: Session,
    user_id: UUID,
    history,
    existing_summary: Optional[str],
    request_id: Optional[str],
    now: datetime,
) -> OperatingStyleProfile:
    feedback = EffortFeedbackRepository(db).list_for_user(user_id)
    profile = create_operating_style_profile(
        history,
        feedback,
        existing_summary,
        tz=resolve_timezone(settings.analytics_timezone),
        now=now,
    )
    if not profile.ai_summary:
        summary, source = request_style_summary(profile, request_id=request_id)
        logger.debug("Operating style summary for %s from %s", user_id, source)
        profile = profile.model_copy(update={"ai_summary": summary, "summary_generated_at": now})
    return profile


def load_operating_style(
    db: Session,
    user_id: UUID,
    *,
    request_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> OperatingStyleResult:
    """Return the stored profile, rebuilding it first when enough new plans arrived."""
    now = now or datetime.now(timezone.utc)
    history_repo = HistoryRepository(db)
    plan_count = history_repo.count_for_user(user_id)
    if plan_count < MIN_PLANS_FOR_PROFILE:
        return OperatingStyleResult(profile=None, plan_count=plan_count)

    profiles = ProfileRepository(db)
    existing = profiles.get_operating_style(user_id)
    if not should_regenerate_profile(existing, plan_count):
        return OperatingStyleResult(profile=existing, plan_count=plan_count)

    # Snapshots are only parsed when a rebuild is due.
    history = history_repo.list_for_user(user_id)
    profile = _build_style_profile(
        db,
        user_id,
        history,
        existing.ai_summary if existing else None,
        request_id,
        now,
    )
    profiles.save_operating_style(user_id, profile)
    logger.info("Operating style regenerated for user %s over %s plans", user_id, plan_count)
    return OperatingStyleResult(profile=profile, plan_count=plan_count, regenerated=True)


def regenerate_operating_style(
    db: Session,
    user_id: UUID,
    *,
    request_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> OperatingStyleResult:
    """Rebuild unconditionally with a fresh summary; no-op below the plan minimum."""
    now = now or datetime.now(timezone.utc)
    history = HistoryRepository(db).list_for_user(user_id)
    if len(history) < MIN_PLANS_FOR_PROFILE:
        return OperatingStyleResult(profile=None, plan_count=len(history))

    profile = _build_style_profile(db, user_id, history, None, request_id, now)
    ProfileRepository(db).save_operating_style(user_id, profile)
    return OperatingStyleResult(profile=profile, plan_count=len(history), regenerated=True)


def record_plan_execution(
    db: Session,
    user_id: UUID,
    plan_data: Dict[str, Any],
    *,
    is_strategic: bool = False,
    now: Optional[datetime] = None,
) -> ExecutionUpdate:
    """Fold one finished plan into the user's execution profile and progress history."""
    now = now or datetime.now(timezone.utc)
    plan = parse_plan_snapshot(plan_data)
    effort = effort_history_by_task(EffortFeedbackRepository(db).list_for_user(user_id))
    tz = resolve_timezone(settings.analytics_timezone)

    profiles = ProfileRepository(db)
    previous = profiles.get_execution_profile(user_id)
    observation = extract_profile_from_plan(plan, effort, tz=tz, now=now)
    merged = merge_profile_updates(previous, observation, now)

    snapshot = create_plan_cycle_snapshot(
        plan,
        is_strategic or plan.is_strategic_plan,
        effort,
        now,
    )
    merged = merged.model_copy(
        update={"progress_history": append_snapshot_to_history(merged.progress_history, snapshot)}
    )
    profiles.save_execution_profile(user_id, merged)

    changes = detect_pattern_changes(previous, merged) if previous else []
    return ExecutionUpdate(
        previous=previous,
        profile=merged,
        changes=changes,
        insights=generate_calibration_insights(merged),
        summary=summarize_execution(compile_execution_metrics(plan, effort, now)),
    )
