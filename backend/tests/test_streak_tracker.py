from __future__ import annotations

from datetime import date

from kaamyab.api.schemas.daily_context import StreakState
from kaamyab.services.streak_tracker import (
    get_current_streak,
    has_completed_today,
    record_task_completion,
)

TODAY = date(2025, 3, 10)


def test_streak_survives_until_a_full_day_is_missed() -> None:
    assert get_current_streak(StreakState(count=3, last_completion_date=TODAY), TODAY).count == 3
    assert get_current_streak(StreakState(count=3, last_completion_date=date(2025, 3, 9)), TODAY).count == 3

    broken = get_current_streak(StreakState(count=3, last_completion_date=date(2025, 3, 8)), TODAY)
    assert broken == StreakState(count=0, last_completion_date=None)


def test_first_completion_of_the_day_moves_the_streak() -> None:
    continued = record_task_completion(StreakState(count=2, last_completion_date=date(2025, 3, 9)), TODAY)
    assert continued == StreakState(count=3, last_completion_date=TODAY)

    again = record_task_completion(continued, TODAY)
    assert again.count == 3

    restarted = record_task_completion(StreakState(count=9, last_completion_date=date(2025, 2, 1)), TODAY)
    assert restarted == StreakState(count=1, last_completion_date=TODAY)

    assert record_task_completion(StreakState(), TODAY).count == 1


def test_has_completed_today() -> None:
    assert has_completed_today(StreakState(count=1, last_completion_date=TODAY), TODAY) is True
    assert has_completed_today(StreakState(), TODAY) is False
