"""Operating style analysis: metric extraction, dimension scoring and profile lifecycle.

Strictly observational. Nothing here modifies plans or tasks; it reads archived
plan history (plus effort feedback timestamps) and describes working patterns
along four neutral dimensions.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone, tzinfo
from typing import Iterable, List, Optional, Sequence

from kaamyab.api.schemas.operating_style import (
    DimensionMeta,
    OperatingStyleDimensions,
    OperatingStyleMetrics,
    OperatingStyleProfile,
)
from kaamyab.api.schemas.plan_history import EffortFeedbackEntry, PlanHistoryEntry
from kaamyab.services.numeric import (
    NEUTRAL,
    clamp01,
    mean,
    normalize,
    safe_divide,
    standard_deviation,
)
from kaamyab.services.timestamps import convert_timezone, parse_timestamp

logger = logging.getLogger(__name__)

# Completed plans needed before any profile is surfaced.
MIN_PLANS_FOR_PROFILE = 3
# New plans needed since the last analysis before the profile is rebuilt.
MIN_NEW_PLANS_FOR_REGENERATION = 2

SPLIT_TASK_PATTERN = re.compile(r"\(Part \d+\)|Part \d+:", re.IGNORECASE)

MORNING_END_HOUR = 12
AFTERNOON_END_HOUR = 18
# Largest population std dev of three shares summing to 1 (all in one bucket).
MAX_BUCKET_SPREAD = 0.47

DIMENSION_METADATA: List[DimensionMeta] = [
    DimensionMeta(
        id="planning_density",
        left_label="Light Planner",
        right_label="Detailed Planner",
        description="Task count and granularity across plans",
    ),
    DimensionMeta(
        id="execution_follow_through",
        left_label="Starter",
        right_label="Finisher",
        description="Completion rate and closure consistency",
    ),
    DimensionMeta(
        id="adjustment_behavior",
        left_label="Steady",
        right_label="Adaptive",
        description="Task deferrals and mid-plan adjustments",
    ),
    DimensionMeta(
        id="cadence_preference",
        left_label="Morning Focus",
        right_label="Variable Rhythm",
        description="Time-of-day execution patterns",
    ),
]


def calculate_data_version_hash(plan_count: int, total_tasks: int, total_completed: int) -> str:
    """Cache key that changes whenever meaningful new data arrives."""
    return f"v1_{plan_count}_{total_tasks}_{total_completed}"


def should_regenerate_profile(existing: Optional[OperatingStyleProfile], current_plans_count: int) -> bool:
    if existing is None:
        return current_plans_count >= MIN_PLANS_FOR_PROFILE
    new_plans = current_plans_count - existing.analyzed_plans_count
    return new_plans >= MIN_NEW_PLANS_FOR_REGENERATION


class _DayPartCounter:
    def __init__(self, tz: Optional[tzinfo]) -> None:
        self.tz = tz
        self.morning = 0
        self.afternoon = 0
        self.evening = 0

    def add(self, raw: Optional[str]) -> None:
        moment = parse_timestamp(raw)
        if moment is None:
            return
        if self.tz is not None and moment.tzinfo is not None:
            moment = convert_timezone(moment, self.tz)
            if moment is None:
                return
        if moment.hour < MORNING_END_HOUR:
            self.morning += 1
        elif moment.hour < AFTERNOON_END_HOUR:
            self.afternoon += 1
        else:
            self.evening += 1


def extract_metrics(
    history: Sequence[PlanHistoryEntry],
    effort_feedback: Iterable[EffortFeedbackEntry] = (),
    tz: Optional[tzinfo] = None,
) -> OperatingStyleMetrics:
    """Aggregate raw counters from archived plans and effort feedback."""
    total_plans = len(history)
    total_tasks = sum(plan.total_tasks for plan in history)
    total_completed = sum(plan.completed_tasks for plan in history)
    total_weeks = sum(plan.total_weeks for plan in history)

    completion_rates = [
        plan.completed_tasks / plan.total_tasks for plan in history if plan.total_tasks > 0
    ]
    plans_with_closures = sum(1 for plan in history if plan.plan_snapshot.day_closures)

    deferral_count = 0
    split_task_count = 0
    day_parts = _DayPartCounter(tz)
    for plan in history:
        for task in plan.plan_snapshot.iter_tasks():
            if task.deferred_to:
                deferral_count += 1
            if SPLIT_TASK_PATTERN.search(task.title):
                split_task_count += 1
            if task.completed_at:
                day_parts.add(task.completed_at)

    for feedback in effort_feedback:
        day_parts.add(feedback.timestamp)

    return OperatingStyleMetrics(
        total_plans=total_plans,
        total_tasks=total_tasks,
        total_completed=total_completed,
        total_weeks=total_weeks,
        avg_tasks_per_week=safe_divide(total_tasks, total_weeks),
        avg_completion_rate=mean(completion_rates),
        plans_with_closures=plans_with_closures,
        deferral_count=deferral_count,
        split_task_count=split_task_count,
        morning_completions=day_parts.morning,
        afternoon_completions=day_parts.afternoon,
        evening_completions=day_parts.evening,
    )


def calculate_planning_density(metrics: OperatingStyleMetrics) -> float:
    """Light Planner (0) to Detailed Planner (1); granularity is the primary signal."""
    granularity = normalize(metrics.avg_tasks_per_week, 3, 12)
    return clamp01(granularity * 0.7 + metrics.avg_completion_rate * 0.3)


def calculate_execution_follow_through(metrics: OperatingStyleMetrics) -> float:
    """Starter (0) to Finisher (1): completion rate plus day-closure consistency."""
    closure_consistency = safe_divide(metrics.plans_with_closures, metrics.total_plans, 0.0)
    return clamp01(metrics.avg_completion_rate * 0.7 + closure_consistency * 0.3)


def calculate_adjustment_behavior(metrics: OperatingStyleMetrics) -> float:
    """Steady (0) to Adaptive (1): deferral plus split rates, saturating at 50%."""
    if metrics.total_tasks == 0:
        return NEUTRAL
    deferral_rate = safe_divide(metrics.deferral_count, metrics.total_tasks, NEUTRAL)
    split_rate = safe_divide(metrics.split_task_count, metrics.total_tasks, NEUTRAL)
    return clamp01(normalize(deferral_rate + split_rate, 0, 0.5))


def calculate_cadence_preference(metrics: OperatingStyleMetrics) -> float:
    """Morning Focus (0) to Variable Rhythm (1).

    Completions concentrated in one part of the day give a high spread across
    buckets, so the normalized spread is inverted.
    """
    total = metrics.morning_completions + metrics.afternoon_completions + metrics.evening_completions
    if total == 0:
        return NEUTRAL
    shares = [
        metrics.morning_completions / total,
        metrics.afternoon_completions / total,
        metrics.evening_completions / total,
    ]
    return clamp01(1 - normalize(standard_deviation(shares), 0, MAX_BUCKET_SPREAD))


def calculate_dimensions(metrics: OperatingStyleMetrics) -> OperatingStyleDimensions:
    return OperatingStyleDimensions(
        planning_density=calculate_planning_density(metrics),
        execution_follow_through=calculate_execution_follow_through(metrics),
        adjustment_behavior=calculate_adjustment_behavior(metrics),
        cadence_preference=calculate_cadence_preference(metrics),
    )


def create_operating_style_profile(
    history: Sequence[PlanHistoryEntry],
    effort_feedback: Iterable[EffortFeedbackEntry] = (),
    existing_ai_summary: Optional[str] = None,
    *,
    tz: Optional[tzinfo] = None,
    now: Optional[datetime] = None,
) -> OperatingStyleProfile:
    now = now or datetime.now(timezone.utc)
    metrics = extract_metrics(history, effort_feedback, tz=tz)
    profile = OperatingStyleProfile(
        dimensions=calculate_dimensions(metrics),
        metrics=metrics,
        ai_summary=existing_ai_summary or None,
        summary_generated_at=now if existing_ai_summary else None,
        data_version_hash=calculate_data_version_hash(
            metrics.total_plans,
            metrics.total_tasks,
            metrics.total_completed,
        ),
        analyzed_plans_count=metrics.total_plans,
        generated_at=now,
    )
    logger.debug(
        "Operating style computed over %s plans (hash=%s)",
        metrics.total_plans,
        profile.data_version_hash,
    )
    return profile


def generate_operating_style_hint(profile: Optional[OperatingStyleProfile]) -> Optional[str]:
    """Return the first clear pattern worth mentioning during plan creation, if any."""
    if profile is None or profile.analyzed_plans_count < MIN_PLANS_FOR_PROFILE:
        return None

    dims = profile.dimensions
    hints: List[str] = []

    if dims.cadence_preference < 0.3:
        hints.append("You typically work through tasks early in the day.")
    elif dims.cadence_preference > 0.7:
        hints.append("Your task completion tends to be spread throughout the day.")

    if dims.planning_density > 0.7:
        hints.append("You tend to create detailed plans with many tasks.")
    elif dims.planning_density < 0.3:
        hints.append("You tend to prefer lighter plans with fewer tasks.")

    if dims.adjustment_behavior > 0.7:
        hints.append("You often adjust and reorganize tasks during a plan cycle.")

    if dims.execution_follow_through > 0.8:
        hints.append("You have a strong pattern of completing most tasks you start.")

    return hints[0] if hints else None
