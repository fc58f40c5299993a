"""Daily completion streak rules.

Streak state lives in ``user_streaks``; these functions only decide how it
moves, with ``today`` passed in by the caller.
"""
from __future__ import annotations

from datetime import date, timedelta

from kaamyab.api.schemas.daily_context import StreakState


def _is_active(state: StreakState, today: date) -> bool:
    return state.last_completion_date in (today, today - timedelta(days=1))


def get_current_streak(state: StreakState, today: date) -> StreakState:
    """Current streak, reset to zero once a full day has been missed."""
    if state.last_completion_date is None or not _is_active(state, today):
        return StreakState(count=0, last_completion_date=None)
    return state


def record_task_completion(state: StreakState, today: date) -> StreakState:
    """Only the first completion of a day moves the streak."""
    if state.last_completion_date == today:
        return state
    if state.last_completion_date == today - timedelta(days=1):
        return StreakState(count=state.count + 1, last_completion_date=today)
    return StreakState(count=1, last_completion_date=today)


def has_completed_today(state: StreakState, today: date) -> bool:
    return state.last_completion_date == today
