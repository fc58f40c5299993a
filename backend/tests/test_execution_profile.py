"""Tests for the personal execution profile: extraction, merge and insight gating."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from kaamyab.api.schemas.execution_profile import (
    DelayPatterns,
    EstimationTrend,
    ExecutionProfileObservation,
    OverloadTendency,
    PersonalExecutionProfile,
    PlanningBalance,
)
from kaamyab.api.schemas.plan_history import parse_plan_snapshot
from kaamyab.services.execution_profile import (
    MAX_PROGRESS_SNAPSHOTS,
    append_snapshot_to_history,
    calculate_confidence_level,
    create_plan_cycle_snapshot,
    detect_pattern_changes,
    extract_profile_from_plan,
    generate_calibration_insights,
    generate_planning_hints,
    merge_profile_updates,
)

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def _profile(**overrides) -> PersonalExecutionProfile:
    values = {"last_updated": NOW}
    values.update(overrides)
    return PersonalExecutionProfile(**values)


@pytest.mark.parametrize(
    ("points", "expected"),
    [(0, "low"), (9, "low"), (10, "medium"), (29, "medium"), (30, "high")],
)
def test_confidence_level_boundaries(points, expected) -> None:
    assert calculate_confidence_level(points) == expected


def test_merge_into_empty_profile() -> None:
    observation = ExecutionProfileObservation(
        estimation_accuracy_trend=EstimationTrend(current_pattern="optimistic", average_variance_percent=40),
        data_points_count=5,
    )

    merged = merge_profile_updates(None, observation, NOW)

    assert merged.plans_analyzed == 1
    assert merged.data_points_count == 5
    assert merged.confidence_level == "low"
    assert merged.estimation_accuracy_trend.average_variance_percent == 40


def test_merge_weights_numeric_fields_by_data_points() -> None:
    existing = _profile(
        estimation_accuracy_trend=EstimationTrend(average_variance_percent=30, consistency_score=60),
        overload_tendency=OverloadTendency(optimal_daily_tasks=2),
        data_points_count=10,
        plans_analyzed=2,
    )
    observation = ExecutionProfileObservation(
        estimation_accuracy_trend=EstimationTrend(
            current_pattern="pessimistic",
            average_variance_percent=-30,
            consistency_score=90,
        ),
        overload_tendency=OverloadTendency(optimal_daily_tasks=5),
        planning_vs_execution=PlanningBalance(balance_assessment="execution-heavy"),
        data_points_count=5,
    )

    merged = merge_profile_updates(existing, observation, NOW)

    assert merged.data_points_count == 15
    assert merged.plans_analyzed == 3
    assert merged.confidence_level == "medium"
    trend = merged.estimation_accuracy_trend
    assert trend.average_variance_percent == pytest.approx(30 * 10 / 15 + -30 * 5 / 15)
    assert trend.consistency_score == pytest.approx(60 * 10 / 15 + 90 * 5 / 15)
    assert trend.current_pattern == "pessimistic"
    # 2 * 2/3 + 5 * 1/3 = 3.0
    assert merged.overload_tendency.optimal_daily_tasks == 3
    assert merged.planning_vs_execution.balance_assessment == "execution-heavy"
    assert merged.delay_patterns == existing.delay_patterns


def test_merge_with_empty_observation_keeps_numbers_and_counts_the_plan() -> None:
    existing = _profile(
        estimation_accuracy_trend=EstimationTrend(average_variance_percent=25, consistency_score=70),
        data_points_count=4,
        plans_analyzed=1,
    )

    merged = merge_profile_updates(existing, ExecutionProfileObservation(), NOW)

    assert merged.data_points_count == 4
    assert merged.plans_analyzed == 2
    assert merged.estimation_accuracy_trend.average_variance_percent == 25
    assert merged.estimation_accuracy_trend.consistency_score == 70


def test_insights_gated_below_three_data_points() -> None:
    profile = _profile(
        estimation_accuracy_trend=EstimationTrend(current_pattern="optimistic", average_variance_percent=80),
        overload_tendency=OverloadTendency(optimal_daily_tasks=1),
        planning_vs_execution=PlanningBalance(balance_assessment="planning-heavy"),
        data_points_count=2,
    )

    assert generate_calibration_insights(profile) == []


def test_insights_follow_fixed_priority_and_cap() -> None:
    profile = _profile(
        estimation_accuracy_trend=EstimationTrend(current_pattern="optimistic", average_variance_percent=35),
        overload_tendency=OverloadTendency(optimal_daily_tasks=2),
        planning_vs_execution=PlanningBalance(balance_assessment="planning-heavy"),
        delay_patterns=DelayPatterns(front_loading_preference=True),
        data_points_count=12,
        confidence_level="medium",
    )

    insights = generate_calibration_insights(profile)

    assert [insight.id for insight in insights] == [
        "estimation-calibration",
        "workload-optimal",
        "planning-balance",
        "front-loading",
    ]
    assert insights[0].text == "You typically underestimate task duration by ~35%."
    assert insights[0].severity == "pattern"


def test_planning_hints_require_confidence() -> None:
    low = _profile(
        estimation_accuracy_trend=EstimationTrend(current_pattern="optimistic", average_variance_percent=50),
        confidence_level="low",
    )
    medium = low.model_copy(update={"confidence_level": "medium"})

    assert generate_planning_hints(low, "deadline") is None
    assert generate_planning_hints(None, "deadline") is None
    hint = generate_planning_hints(medium, "deadline")
    assert hint.id == "buffer-suggestion"
    assert "~35%" in hint.text
    assert generate_planning_hints(medium, "strategic") is None


def test_workload_hint_when_estimates_are_fine() -> None:
    profile = _profile(overload_tendency=OverloadTendency(optimal_daily_tasks=3), confidence_level="high")

    hint = generate_planning_hints(profile, "project")

    assert hint.id == "workload-hint"


def test_extract_profile_from_plan() -> None:
    plan = parse_plan_snapshot(
        {
            "weeks": [
                {
                    "week": 1,
                    "tasks": [
                        # Monday and Tuesday completions: front-loaded week.
                        {"title": "A", "completed": True, "estimated_hours": 1, "time_spent_seconds": 5400,
                         "completed_at": "2025-03-03T09:00:00Z"},
                        {"title": "B", "completed": True, "estimated_hours": 1, "time_spent_seconds": 5400,
                         "completed_at": "2025-03-03T11:00:00Z"},
                        {"title": "C", "completed": True, "estimated_hours": 1, "time_spent_seconds": 5400,
                         "completed_at": "2025-03-04T11:00:00Z"},
                        {"title": "D"},
                    ],
                }
            ]
        }
    )

    observation = extract_profile_from_plan(plan, now=NOW)

    assert observation.data_points_count == 3
    assert observation.estimation_accuracy_trend.current_pattern == "optimistic"
    assert observation.estimation_accuracy_trend.average_variance_percent == pytest.approx(50)
    assert observation.estimation_accuracy_trend.consistency_score == 100
    assert observation.overload_tendency.optimal_daily_tasks == 2
    assert observation.overload_tendency.overload_threshold == 4
    assert observation.delay_patterns.front_loading_preference is True
    assert observation.planning_vs_execution.balance_assessment == "execution-heavy"


def test_extract_profile_without_tracked_time_is_empty() -> None:
    plan = parse_plan_snapshot({"weeks": [{"tasks": [{"title": "A", "completed": True}]}]})

    observation = extract_profile_from_plan(plan, now=NOW)

    assert observation.is_empty
    assert observation.data_points_count is None


def test_pattern_changes_thresholds() -> None:
    previous = _profile(estimation_accuracy_trend=EstimationTrend(average_variance_percent=40, consistency_score=50))
    current = _profile(estimation_accuracy_trend=EstimationTrend(average_variance_percent=20, consistency_score=55))

    changes = detect_pattern_changes(previous, current)

    assert len(changes) == 1
    assert changes[0].field == "estimation_accuracy"
    assert changes[0].direction == "improved"
    assert changes[0].detail == "Improved by 20%"


def test_progress_history_keeps_last_ten_snapshots() -> None:
    plan = parse_plan_snapshot({"weeks": [{"tasks": [{"title": "A", "completed": True}]}]})
    history = None
    for day in range(1, 13):
        snapshot = create_plan_cycle_snapshot(plan, now=NOW.replace(day=day))
        history = append_snapshot_to_history(history, snapshot)

    assert len(history.snapshots) == MAX_PROGRESS_SNAPSHOTS
    assert history.total_plans_tracked == 12
    assert history.last_snapshot_date == NOW.replace(day=12)
    assert history.snapshots[0].snapshot_date == NOW.replace(day=3)


def test_cycle_snapshot_metrics() -> None:
    plan = parse_plan_snapshot(
        {
            "weeks": [
                {"tasks": [{"title": "A", "completed": True, "time_spent_seconds": 3600,
                            "completed_at": "2025-03-03T09:00:00Z"}, {"title": "B", "completed": True}]},
                {"tasks": [{"title": "C"}, {"title": "D"}]},
            ]
        }
    )

    snapshot = create_plan_cycle_snapshot(plan, is_strategic=True, now=NOW)

    assert snapshot.plan_type == "strategic"
    assert snapshot.metrics.tasks_completed == 1
    assert snapshot.metrics.completion_rate == 25
    assert snapshot.metrics.completion_smoothness == 50
    assert snapshot.patterns.front_loaded is True
    assert snapshot.patterns.consistent_pace is False


def test_extract_profile_skips_completions_outside_the_local_calendar() -> None:
    from zoneinfo import ZoneInfo

    plan = parse_plan_snapshot(
        {
            "weeks": [
                {
                    "week": 1,
                    "tasks": [
                        # Valid in UTC but before year 1 once shifted to New York.
                        {"title": "Edge", "completed": True, "estimated_hours": 1, "time_spent_seconds": 3600,
                         "completed_at": "0001-01-01T00:30:00Z"},
                        {"title": "Kept", "completed": True, "estimated_hours": 1, "time_spent_seconds": 3600,
                         "completed_at": "2025-03-03T15:00:00Z"},
                    ],
                }
            ]
        }
    )

    observation = extract_profile_from_plan(plan, tz=ZoneInfo("America/New_York"), now=NOW)

    assert observation.data_points_count == 2
    assert observation.overload_tendency.optimal_daily_tasks == 2
    assert observation.delay_patterns.front_loading_preference is True
