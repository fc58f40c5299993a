"""Execution metrics for a single plan: estimation accuracy, effort and velocity."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional

from kaamyab.api.schemas.execution_profile import (
    CompletionVelocitySummary,
    EffortBreakdown,
    PlanExecutionSummary,
    TaskVariance,
)
from kaamyab.api.schemas.plan_history import EffortFeedbackEntry, PlanSnapshot
from kaamyab.services.numeric import round_half_up, safe_divide
from kaamyab.services.timestamps import convert_timezone, parse_timestamp

# Variance within this many percent of the estimate counts as accurate.
ACCURACY_THRESHOLD = 20.0
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400


@dataclass
class CompletedTaskMetric:
    week_index: int
    task_index: int
    title: str
    estimated_hours: float
    actual_seconds: float
    completed_at: datetime
    variance_percent: float
    effort: Optional[str] = None


@dataclass
class EstimationAccuracy:
    average_variance: float = 0.0
    overestimated_count: int = 0
    underestimated_count: int = 0
    accurate_count: int = 0
    pattern: str = "accurate"


@dataclass
class EffortPatterns:
    easy_count: int = 0
    okay_count: int = 0
    hard_count: int = 0
    hard_tasks_time_ratio: float = 0.0
    total_with_feedback: int = 0


@dataclass
class CompletionVelocity:
    tasks_per_day: float = 0.0
    average_time_per_task: float = 0.0
    fastest_task: Optional[CompletedTaskMetric] = None
    slowest_task: Optional[CompletedTaskMetric] = None


@dataclass
class ExecutionMetrics:
    completed_tasks: List[CompletedTaskMetric] = field(default_factory=list)
    estimation_accuracy: EstimationAccuracy = field(default_factory=EstimationAccuracy)
    effort_patterns: EffortPatterns = field(default_factory=EffortPatterns)
    completion_velocity: CompletionVelocity = field(default_factory=CompletionVelocity)
    total_time_spent: float = 0.0
    plan_progress: int = 0


def task_key(week_index: int, task_index: int) -> str:
    """Key effort feedback is stored under for a task position."""
    return f"{week_index}-{task_index}"


def get_completed_tasks_with_metrics(
    plan: PlanSnapshot,
    effort_history: Mapping[str, EffortFeedbackEntry] | None = None,
    now: Optional[datetime] = None,
) -> List[CompletedTaskMetric]:
    """Completed tasks that carry tracked time, ordered by completion time.

    A missing ``completed_at`` falls back to ``now``; an unparseable or
    out-of-range one drops the task.
    """
    effort_history = effort_history or {}
    fallback = convert_timezone(now or datetime.now(timezone.utc), timezone.utc)
    completed: List[CompletedTaskMetric] = []

    for week_index, week in enumerate(plan.weeks):
        for task_index, task in enumerate(week.tasks):
            if not task.is_done or not task.time_spent_seconds or task.time_spent_seconds <= 0:
                continue

            if task.completed_at:
                parsed = parse_timestamp(task.completed_at)
                completed_at = convert_timezone(parsed, timezone.utc) if parsed is not None else None
            else:
                completed_at = fallback
            if completed_at is None:
                continue

            estimated_hours = task.estimated_hours or 1
            estimated_seconds = estimated_hours * SECONDS_PER_HOUR
            actual_seconds = task.time_spent_seconds
            feedback = effort_history.get(task_key(week_index, task_index))

            completed.append(
                CompletedTaskMetric(
                    week_index=week_index,
                    task_index=task_index,
                    title=task.title,
                    estimated_hours=estimated_hours,
                    actual_seconds=actual_seconds,
                    completed_at=completed_at,
                    variance_percent=(actual_seconds - estimated_seconds) / estimated_seconds * 100,
                    effort=feedback.effort if feedback else None,
                )
            )

    return sorted(completed, key=lambda metric: metric.completed_at)


def calculate_estimation_accuracy(tasks: List[CompletedTaskMetric]) -> EstimationAccuracy:
    if not tasks:
        return EstimationAccuracy()

    result = EstimationAccuracy()
    total_variance = 0.0
    for task in tasks:
        total_variance += task.variance_percent
        if abs(task.variance_percent) <= ACCURACY_THRESHOLD:
            result.accurate_count += 1
        elif task.variance_percent > 0:
            # Took longer than planned: the estimate was too low.
            result.underestimated_count += 1
        else:
            result.overestimated_count += 1

    result.average_variance = total_variance / len(tasks)
    if abs(result.average_variance) <= ACCURACY_THRESHOLD:
        result.pattern = "accurate"
    elif result.average_variance > 0:
        result.pattern = "optimistic"
    else:
        result.pattern = "pessimistic"
    return result


def analyze_effort_patterns(tasks: List[CompletedTaskMetric]) -> EffortPatterns:
    result = EffortPatterns()
    time_with_feedback = 0.0
    hard_time = 0.0

    for task in tasks:
        if not task.effort:
            continue
        result.total_with_feedback += 1
        time_with_feedback += task.actual_seconds
        if task.effort == "easy":
            result.easy_count += 1
        elif task.effort == "okay":
            result.okay_count += 1
        elif task.effort == "hard":
            result.hard_count += 1
            hard_time += task.actual_seconds

    result.hard_tasks_time_ratio = safe_divide(hard_time, time_with_feedback) * 100
    return result


def calculate_completion_velocity(tasks: List[CompletedTaskMetric]) -> CompletionVelocity:
    if not tasks:
        return CompletionVelocity()

    total_time = sum(task.actual_seconds for task in tasks)
    timestamps = [task.completed_at.timestamp() for task in tasks]
    day_span = max(1, math.ceil((max(timestamps) - min(timestamps)) / SECONDS_PER_DAY))
    by_variance = sorted(tasks, key=lambda task: task.variance_percent)

    return CompletionVelocity(
        tasks_per_day=len(tasks) / day_span,
        average_time_per_task=total_time / len(tasks),
        fastest_task=by_variance[0],
        slowest_task=by_variance[-1],
    )


def calculate_plan_progress_percent(plan: PlanSnapshot) -> int:
    tasks = plan.iter_tasks()
    completed = sum(1 for task in tasks if task.is_done)
    return round_half_up(safe_divide(completed, len(tasks)) * 100)


def compile_execution_metrics(
    plan: PlanSnapshot,
    effort_history: Mapping[str, EffortFeedbackEntry] | None = None,
    now: Optional[datetime] = None,
) -> ExecutionMetrics:
    completed = get_completed_tasks_with_metrics(plan, effort_history, now)
    return ExecutionMetrics(
        completed_tasks=completed,
        estimation_accuracy=calculate_estimation_accuracy(completed),
        effort_patterns=analyze_effort_patterns(completed),
        completion_velocity=calculate_completion_velocity(completed),
        total_time_spent=sum(task.actual_seconds for task in completed),
        plan_progress=calculate_plan_progress_percent(plan),
    )


def effort_history_by_task(entries: List[EffortFeedbackEntry]) -> Dict[str, EffortFeedbackEntry]:
    """Index feedback by task key; later entries win."""
    return {entry.task_id: entry for entry in entries}


def _task_variance(task: Optional[CompletedTaskMetric]) -> Optional[TaskVariance]:
    if task is None:
        return None
    return TaskVariance(title=task.title, variance_percent=task.variance_percent)


def summarize_execution(metrics: ExecutionMetrics) -> PlanExecutionSummary:
    """Per-plan view of the compiled metrics as returned to clients."""
    effort = metrics.effort_patterns
    velocity = metrics.completion_velocity
    return PlanExecutionSummary(
        plan_progress_percent=metrics.plan_progress,
        tasks_with_tracked_time=len(metrics.completed_tasks),
        total_time_spent_seconds=metrics.total_time_spent,
        estimation_pattern=metrics.estimation_accuracy.pattern,
        average_variance_percent=metrics.estimation_accuracy.average_variance,
        effort=EffortBreakdown(
            easy_count=effort.easy_count,
            okay_count=effort.okay_count,
            hard_count=effort.hard_count,
            total_with_feedback=effort.total_with_feedback,
            hard_tasks_time_percent=round_half_up(effort.hard_tasks_time_ratio),
        ),
        velocity=CompletionVelocitySummary(
            tasks_per_day=velocity.tasks_per_day,
            average_time_per_task_seconds=velocity.average_time_per_task,
            fastest_task=_task_variance(velocity.fastest_task),
            slowest_task=_task_variance(velocity.slowest_task),
        ),
    )
