"""Personal execution profile: per-plan extraction, incremental merge and calibration output."""
from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, List, Mapping, Optional

from kaamyab.api.schemas.execution_profile import (
    CalibrationInsight,
    CycleMetrics,
    CyclePatterns,
    DelayPatterns,
    EstimationTrend,
    ExecutionProfileObservation,
    OverloadTendency,
    PatternChange,
    PersonalExecutionProfile,
    PlanCycleSnapshot,
    PlanningBalance,
    PlanningHint,
    ProgressHistory,
    TaskTypeBiases,
)
from kaamyab.api.schemas.plan_history import EffortFeedbackEntry, PlanSnapshot
from kaamyab.services.execution_analytics import ExecutionMetrics, compile_execution_metrics
from kaamyab.services.numeric import (
    clamp,
    mean,
    round_half_up,
    safe_divide,
    standard_deviation,
    weighted_average,
)
from kaamyab.services.timestamps import to_local_naive

MIN_DATA_POINTS_FOR_INSIGHTS = 3
MAX_INSIGHTS = 4
MAX_PROGRESS_SNAPSHOTS = 10
# Mid-week point on a Sunday=0 .. Saturday=6 scale.
MID_WEEK = 3.5
OBSERVED_SECTIONS = (
    "estimation_accuracy_trend",
    "overload_tendency",
    "delay_patterns",
    "planning_vs_execution",
)


def calculate_confidence_level(data_points: int) -> str:
    if data_points >= 30:
        return "high"
    if data_points >= 10:
        return "medium"
    return "low"


def _weekday_sunday_first(moment: datetime) -> int:
    return (moment.weekday() + 1) % 7


def _estimation_trend(metrics: ExecutionMetrics) -> EstimationTrend:
    variances = [task.variance_percent for task in metrics.completed_tasks]
    consistency = clamp(100 - standard_deviation(variances), 0, 100)
    accuracy = metrics.estimation_accuracy
    return EstimationTrend(
        current_pattern=accuracy.pattern,
        average_variance_percent=accuracy.average_variance,
        consistency_score=round_half_up(consistency),
        task_type_biases=TaskTypeBiases(execution=accuracy.average_variance),
    )


def _local_completions(metrics: ExecutionMetrics, tz: Optional[tzinfo]) -> List[datetime]:
    moments = (to_local_naive(task.completed_at, tz) for task in metrics.completed_tasks)
    return [moment for moment in moments if moment is not None]


def _overload_tendency(metrics: ExecutionMetrics, tz: Optional[tzinfo]) -> OverloadTendency:
    per_day: Dict[Any, int] = defaultdict(int)
    for local in _local_completions(metrics, tz):
        per_day[local.date()] += 1
    avg_daily = mean(list(per_day.values()))
    optimal = round_half_up(clamp(avg_daily, 2, 5))
    return OverloadTendency(optimal_daily_tasks=optimal, overload_threshold=optimal + 2)


def _delay_patterns(metrics: ExecutionMetrics, tz: Optional[tzinfo]) -> DelayPatterns:
    weekdays = [_weekday_sunday_first(local) for local in _local_completions(metrics, tz)]
    avg_day = mean(weekdays, default=MID_WEEK)
    return DelayPatterns(front_loading_preference=avg_day < MID_WEEK)


def _planning_balance(metrics: ExecutionMetrics, plan: PlanSnapshot) -> PlanningBalance:
    ratio = safe_divide(len(metrics.completed_tasks), len(plan.iter_tasks()))
    if ratio < 0.3:
        assessment = "planning-heavy"
    elif ratio > 0.7:
        assessment = "execution-heavy"
    else:
        assessment = "balanced"
    return PlanningBalance(balance_assessment=assessment)


def extract_profile_from_plan(
    plan: PlanSnapshot,
    effort_history: Mapping[str, EffortFeedbackEntry] | None = None,
    *,
    tz: Optional[tzinfo] = None,
    now: Optional[datetime] = None,
) -> ExecutionProfileObservation:
    """Observations from one plan; empty when no completed task has tracked time."""
    now = now or datetime.now(timezone.utc)
    metrics = compile_execution_metrics(plan, effort_history, now)
    if not metrics.completed_tasks:
        return ExecutionProfileObservation()

    return ExecutionProfileObservation(
        estimation_accuracy_trend=_estimation_trend(metrics),
        overload_tendency=_overload_tendency(metrics, tz),
        delay_patterns=_delay_patterns(metrics, tz),
        planning_vs_execution=_planning_balance(metrics, plan),
        data_points_count=len(metrics.completed_tasks),
        last_updated=now,
    )


def create_default_profile(
    observation: ExecutionProfileObservation,
    now: Optional[datetime] = None,
) -> PersonalExecutionProfile:
    data_points = observation.data_points_count or 0
    sections: Dict[str, Any] = {}
    for name in OBSERVED_SECTIONS:
        section = getattr(observation, name)
        if section is not None:
            sections[name] = section
    return PersonalExecutionProfile(
        **sections,
        last_updated=now or datetime.now(timezone.utc),
        data_points_count=data_points,
        plans_analyzed=1,
        confidence_level=calculate_confidence_level(data_points),
    )


def merge_profile_updates(
    existing: Optional[PersonalExecutionProfile],
    observation: ExecutionProfileObservation,
    now: Optional[datetime] = None,
) -> PersonalExecutionProfile:
    """Blend one plan's observations into the stored profile.

    Numeric fields are weighted by data points; categorical sections take the
    new value when present. Each call counts as exactly one analyzed plan.
    """
    now = now or datetime.now(timezone.utc)
    if existing is None:
        return create_default_profile(observation, now)

    new_points = observation.data_points_count or 0
    total_points = existing.data_points_count + new_points
    weight = safe_divide(new_points, total_points, 0.0)

    old_trend = existing.estimation_accuracy_trend
    new_trend = observation.estimation_accuracy_trend
    merged_trend = EstimationTrend(
        current_pattern=new_trend.current_pattern if new_trend else old_trend.current_pattern,
        average_variance_percent=weighted_average(
            old_trend.average_variance_percent,
            new_trend.average_variance_percent if new_trend else 0,
            weight,
        ),
        consistency_score=weighted_average(
            old_trend.consistency_score,
            new_trend.consistency_score if new_trend else 50,
            weight,
        ),
        task_type_biases=old_trend.task_type_biases,
    )

    old_load = existing.overload_tendency
    new_load = observation.overload_tendency
    merged_load = OverloadTendency(
        optimal_daily_tasks=round_half_up(
            weighted_average(
                old_load.optimal_daily_tasks,
                new_load.optimal_daily_tasks if new_load else 3,
                weight,
            )
        ),
        completion_rate_by_load=old_load.completion_rate_by_load,
        overload_threshold=old_load.overload_threshold,
    )

    return PersonalExecutionProfile(
        estimation_accuracy_trend=merged_trend,
        overload_tendency=merged_load,
        delay_patterns=observation.delay_patterns or existing.delay_patterns,
        planning_vs_execution=observation.planning_vs_execution or existing.planning_vs_execution,
        productivity_bias=existing.productivity_bias,
        last_updated=now,
        data_points_count=total_points,
        plans_analyzed=existing.plans_analyzed + 1,
        confidence_level=calculate_confidence_level(total_points),
        progress_history=existing.progress_history,
    )


def generate_calibration_insights(profile: PersonalExecutionProfile) -> List[CalibrationInsight]:
    if profile.data_points_count < MIN_DATA_POINTS_FOR_INSIGHTS:
        return []

    insights: List[CalibrationInsight] = []
    trend = profile.estimation_accuracy_trend

    if trend.current_pattern != "accurate":
        variance = abs(trend.average_variance_percent)
        if variance > 15:
            direction = "underestimate" if trend.current_pattern == "optimistic" else "overestimate"
            insights.append(
                CalibrationInsight(
                    id="estimation-calibration",
                    category="estimation",
                    text=f"You typically {direction} task duration by ~{round_half_up(variance)}%.",
                    severity="pattern" if variance > 30 else "observation",
                )
            )

    optimal_load = profile.overload_tendency.optimal_daily_tasks
    if optimal_load <= 2:
        insights.append(
            CalibrationInsight(
                id="workload-optimal",
                category="workload",
                text=f"Your optimal daily task load appears to be {optimal_load} focused tasks.",
                severity="observation",
            )
        )
    elif optimal_load >= 5:
        insights.append(
            CalibrationInsight(
                id="workload-high",
                category="workload",
                text=f"You handle high daily task volumes well ({optimal_load}+ tasks).",
                severity="info",
            )
        )

    assessment = profile.planning_vs_execution.balance_assessment
    if assessment != "balanced":
        insights.append(
            CalibrationInsight(
                id="planning-balance",
                category="planning",
                text=(
                    "Your plans tend to have more tasks than you complete. Consider scoping down."
                    if assessment == "planning-heavy"
                    else "You execute efficiently. Strong execution momentum."
                ),
                severity="observation",
            )
        )

    if profile.delay_patterns.front_loading_preference and profile.confidence_level != "low":
        insights.append(
            CalibrationInsight(
                id="front-loading",
                category="productivity",
                text="You tend to complete tasks early in the week. Front-loaded planning works well for you.",
                severity="info",
            )
        )

    return insights[:MAX_INSIGHTS]


def generate_planning_hints(
    profile: Optional[PersonalExecutionProfile],
    current_step: str,
    form_data: Optional[Mapping[str, Any]] = None,
) -> Optional[PlanningHint]:
    """Hint for the plan-creation form step; no current rule reads ``form_data``."""
    if profile is None or profile.confidence_level == "low":
        return None
    if current_step not in {"deadline", "project"}:
        return None

    trend = profile.estimation_accuracy_trend
    if trend.current_pattern == "optimistic":
        variance = abs(trend.average_variance_percent)
        if variance > 20:
            return PlanningHint(
                id="buffer-suggestion",
                text=f"Based on your history, consider adding ~{round_half_up(variance * 0.7)}% buffer to time estimates.",
                step="deadline",
            )

    if profile.overload_tendency.optimal_daily_tasks <= 3:
        return PlanningHint(
            id="workload-hint",
            text="You execute better with fewer parallel tasks. Consider a focused plan.",
            step="project",
        )
    return None


def detect_pattern_changes(
    previous: PersonalExecutionProfile,
    current: PersonalExecutionProfile,
) -> List[PatternChange]:
    changes: List[PatternChange] = []

    prev_variance = abs(previous.estimation_accuracy_trend.average_variance_percent)
    curr_variance = abs(current.estimation_accuracy_trend.average_variance_percent)
    variance_change = prev_variance - curr_variance
    if abs(variance_change) > 5:
        changes.append(
            PatternChange(
                field="estimation_accuracy",
                label="Estimation accuracy",
                direction="improved" if variance_change > 0 else "declined",
                detail=(
                    f"Improved by {round_half_up(variance_change)}%"
                    if variance_change > 0
                    else f"Variance increased by {round_half_up(abs(variance_change))}%"
                ),
            )
        )

    consistency_change = (
        current.estimation_accuracy_trend.consistency_score
        - previous.estimation_accuracy_trend.consistency_score
    )
    if abs(consistency_change) > 10:
        changes.append(
            PatternChange(
                field="consistency",
                label="Consistency",
                direction="improved" if consistency_change > 0 else "declined",
                detail=(
                    "More consistent task completion times"
                    if consistency_change > 0
                    else "More variable task completion times"
                ),
            )
        )

    return changes


def _planning_alignment(metrics: ExecutionMetrics) -> int:
    """Share of consecutive completions that did not jump back to an earlier week."""
    ordered = [task.week_index for task in metrics.completed_tasks]
    if len(ordered) < 2:
        return 100
    in_order = sum(1 for prev, nxt in zip(ordered, ordered[1:]) if nxt >= prev)
    return round_half_up(in_order / (len(ordered) - 1) * 100)


def _front_loaded(plan: PlanSnapshot) -> bool:
    if len(plan.weeks) < 2:
        return False
    half = len(plan.weeks) // 2
    first = sum(1 for week in plan.weeks[:half] for task in week.tasks if task.is_done)
    second = sum(1 for week in plan.weeks[half:] for task in week.tasks if task.is_done)
    return first > second * 1.3


def create_plan_cycle_snapshot(
    plan: PlanSnapshot,
    is_strategic: bool = False,
    effort_history: Mapping[str, EffortFeedbackEntry] | None = None,
    now: Optional[datetime] = None,
) -> PlanCycleSnapshot:
    """Summarize one finished plan cycle for the progress history."""
    now = now or datetime.now(timezone.utc)
    metrics = compile_execution_metrics(plan, effort_history, now)
    total_tasks = len(plan.iter_tasks())
    completion_rate = safe_divide(len(metrics.completed_tasks), total_tasks) * 100

    week_shares = [
        sum(1 for task in week.tasks if task.is_done) / (len(week.tasks) or 1) for week in plan.weeks
    ]
    smoothness = clamp(100 - standard_deviation(week_shares) * 100, 0, 100)

    return PlanCycleSnapshot(
        snapshot_id=f"snapshot_{int(now.timestamp() * 1000)}",
        snapshot_date=now,
        plan_type="strategic" if is_strategic else "standard",
        metrics=CycleMetrics(
            average_overrun_percent=metrics.estimation_accuracy.average_variance,
            completion_rate=round_half_up(completion_rate),
            completion_smoothness=round_half_up(smoothness),
            planning_alignment=_planning_alignment(metrics),
            tasks_completed=len(metrics.completed_tasks),
            total_time_spent_seconds=metrics.total_time_spent,
        ),
        patterns=CyclePatterns(
            front_loaded=_front_loaded(plan),
            consistent_pace=smoothness > 70,
        ),
    )


def append_snapshot_to_history(
    existing: Optional[ProgressHistory],
    snapshot: PlanCycleSnapshot,
) -> ProgressHistory:
    snapshots = list(existing.snapshots) if existing else []
    snapshots.append(snapshot)
    return ProgressHistory(
        snapshots=snapshots[-MAX_PROGRESS_SNAPSHOTS:],
        last_snapshot_date=snapshot.snapshot_date,
        total_plans_tracked=(existing.total_plans_tracked if existing else 0) + 1,
    )
