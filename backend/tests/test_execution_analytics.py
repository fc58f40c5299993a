from __future__ import annotations

from datetime import datetime, timezone

import pytest

from kaamyab.api.schemas.plan_history import EffortFeedbackEntry, parse_plan_snapshot
from kaamyab.services.execution_analytics import (
    calculate_estimation_accuracy,
    compile_execution_metrics,
    analyze_effort_patterns,
    effort_history_by_task,
    get_completed_tasks_with_metrics,
    summarize_execution,
    task_key,
)

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def _plan():
    return parse_plan_snapshot(
        {
            "weeks": [
                {
                    "week": 1,
                    "focus": "Foundations",
                    "tasks": [
                        # 2h estimate, 3h actual: +50%.
                        {
                            "title": "Write intro",
                            "estimated_hours": 2,
                            "time_spent_seconds": 10800,
                            "execution_state": "done",
                            "completed_at": "2025-03-04T09:00:00Z",
                        },
                        # 1h default estimate, 1h actual: 0%.
                        {
                            "title": "Read chapter",
                            "completed": True,
                            "time_spent_seconds": 3600,
                            "completed_at": "2025-03-03T09:00:00Z",
                        },
                        {"title": "No time tracked", "completed": True, "completed_at": "2025-03-03T10:00:00Z"},
                        {
                            "title": "Broken date",
                            "completed": True,
                            "time_spent_seconds": 600,
                            "completed_at": "yesterday-ish",
                        },
                    ],
                },
                {
                    "week": 2,
                    "focus": "Build",
                    "tasks": [
                        {"title": "Open", "estimated_hours": 4},
                        # No completed_at: falls back to now.
                        {"title": "Quick fix", "estimated_hours": 1, "time_spent_seconds": 1800, "completed": True},
                    ],
                },
            ]
        }
    )


def test_completed_tasks_filter_and_order() -> None:
    feedback = effort_history_by_task(
        [EffortFeedbackEntry(task_id=task_key(0, 0), effort="hard", timestamp="2025-03-04T09:00:00Z")]
    )

    tasks = get_completed_tasks_with_metrics(_plan(), feedback, now=NOW)

    assert [task.title for task in tasks] == ["Read chapter", "Write intro", "Quick fix"]
    assert tasks[1].variance_percent == pytest.approx(50.0)
    assert tasks[1].effort == "hard"
    assert tasks[0].variance_percent == pytest.approx(0.0)
    assert tasks[2].completed_at == NOW
    assert tasks[2].variance_percent == pytest.approx(-50.0)


def test_estimation_accuracy_classification() -> None:
    tasks = get_completed_tasks_with_metrics(_plan(), now=NOW)

    accuracy = calculate_estimation_accuracy(tasks)

    assert accuracy.accurate_count == 1
    assert accuracy.underestimated_count == 1
    assert accuracy.overestimated_count == 1
    assert accuracy.average_variance == pytest.approx(0.0)
    assert accuracy.pattern == "accurate"


def test_compile_execution_metrics() -> None:
    metrics = compile_execution_metrics(_plan(), now=NOW)

    assert len(metrics.completed_tasks) == 3
    assert metrics.total_time_spent == 10800 + 3600 + 1800
    # 5 of 6 tasks are done.
    assert metrics.plan_progress == 83
    assert metrics.completion_velocity.fastest_task.title == "Quick fix"
    assert metrics.completion_velocity.slowest_task.title == "Write intro"
    assert metrics.completion_velocity.tasks_per_day == pytest.approx(3 / 8)


def test_empty_plan_has_neutral_metrics() -> None:
    metrics = compile_execution_metrics(parse_plan_snapshot({"weeks": []}), now=NOW)

    assert metrics.completed_tasks == []
    assert metrics.plan_progress == 0
    assert metrics.estimation_accuracy.pattern == "accurate"


def test_out_of_range_completion_drops_the_task() -> None:
    plan = parse_plan_snapshot(
        {
            "weeks": [
                {
                    "week": 1,
                    "tasks": [
                        {"title": "Edge", "completed": True, "time_spent_seconds": 600,
                         "completed_at": "0001-01-01T01:00:00+05:00"},
                        {"title": "Kept", "completed": True, "time_spent_seconds": 600,
                         "completed_at": "2025-03-03T09:00:00Z"},
                    ],
                }
            ]
        }
    )

    tasks = get_completed_tasks_with_metrics(plan, now=NOW)

    assert [task.title for task in tasks] == ["Kept"]


def _feedback(*pairs):
    return effort_history_by_task(
        [EffortFeedbackEntry(task_id=key, effort=effort, timestamp="2025-03-04T09:00:00Z") for key, effort in pairs]
    )


def test_effort_patterns_follow_week_task_keys() -> None:
    # "0-0" is Write intro (3h), "0-1" Read chapter (1h), "1-1" Quick fix (30m).
    # "0-2" has no tracked time and "1-0" is not completed, so both are ignored.
    feedback = _feedback(("0-0", "hard"), ("0-1", "easy"), ("1-1", "okay"), ("0-2", "hard"), ("1-0", "hard"))

    tasks = get_completed_tasks_with_metrics(_plan(), feedback, now=NOW)
    patterns = analyze_effort_patterns(tasks)

    assert {task.title: task.effort for task in tasks} == {
        "Write intro": "hard",
        "Read chapter": "easy",
        "Quick fix": "okay",
    }
    assert patterns.total_with_feedback == 3
    assert (patterns.easy_count, patterns.okay_count, patterns.hard_count) == (1, 1, 1)
    assert patterns.hard_tasks_time_ratio == pytest.approx(10800 / (10800 + 3600 + 1800) * 100)


def test_hard_time_ratio_ignores_tasks_without_feedback() -> None:
    tasks = get_completed_tasks_with_metrics(_plan(), _feedback(("0-1", "hard")), now=NOW)

    patterns = analyze_effort_patterns(tasks)

    assert patterns.total_with_feedback == 1
    assert patterns.hard_tasks_time_ratio == pytest.approx(100.0)


def test_effort_patterns_without_feedback_are_zero() -> None:
    patterns = analyze_effort_patterns(get_completed_tasks_with_metrics(_plan(), now=NOW))

    assert patterns.total_with_feedback == 0
    assert patterns.hard_tasks_time_ratio == 0.0


def test_summarize_execution() -> None:
    metrics = compile_execution_metrics(_plan(), _feedback(("0-0", "hard"), ("0-1", "easy")), now=NOW)

    summary = summarize_execution(metrics)

    assert summary.plan_progress_percent == 83
    assert summary.tasks_with_tracked_time == 3
    assert summary.total_time_spent_seconds == 16200
    assert summary.estimation_pattern == "accurate"
    assert summary.effort.hard_count == 1
    assert summary.effort.easy_count == 1
    assert summary.effort.hard_tasks_time_percent == 75
    assert summary.velocity.fastest_task.title == "Quick fix"
    assert summary.velocity.fastest_task.variance_percent == pytest.approx(-50.0)
    assert summary.velocity.slowest_task.title == "Write intro"
    assert summary.velocity.average_time_per_task_seconds == pytest.approx(16200 / 3)


def test_summarize_empty_plan() -> None:
    summary = summarize_execution(compile_execution_metrics(parse_plan_snapshot({"weeks": []}), now=NOW))

    assert summary.tasks_with_tracked_time == 0
    assert summary.velocity.fastest_task is None
    assert summary.effort.total_with_feedback == 0
