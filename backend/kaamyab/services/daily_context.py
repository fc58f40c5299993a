"""Today view classification: day type, focus count and the copy shown with it.

Recomputed from scratch on every call from the active plan, today's task
count, scheduled tasks and the stored streak. Nothing here is persisted.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import List, Optional, Sequence

from kaamyab.api.schemas.daily_context import DailyContext, DayType, ScheduledTask, StreakState
from kaamyab.api.schemas.plan_history import PlanSnapshot
from kaamyab.services.streak_tracker import has_completed_today
from kaamyab.services.timestamps import local_date, to_local_naive

DEFAULT_FOCUS_COUNT = 3
PUSH_STREAK_DAYS = 3
LIGHT_DAY_MAX_TASKS = 2
FOCUS_CAP_ABOVE = 5

NO_PLAN_CONTEXT = DailyContext(
    day_type="normal",
    has_overdue_tasks=False,
    recovery_suggested=False,
    focus_count=DEFAULT_FOCUS_COUNT,
    headline="Ready to start",
    subtext="Create a plan to see your daily focus.",
    streak_days=0,
)

# Checked in order; the first keyword found in the title wins.
EXPLANATION_RULES = (
    (("read", "chapter", "book"), "Break it into 10–15 minute reading blocks. Take notes on key points."),
    (
        ("write", "draft", "document"),
        "Start with an outline. Write the first draft without editing — polish later.",
    ),
    (
        ("research", "study", "explore"),
        "Set a timer. Gather sources first, then synthesize the main findings.",
    ),
    (
        ("design", "mockup", "wireframe"),
        "Start with rough sketches. Iterate on structure before adding details.",
    ),
    (
        ("code", "build", "implement", "develop"),
        "Break it into small commits. Test as you go. Don't optimize prematurely.",
    ),
    (
        ("review", "feedback", "check"),
        "Go through systematically. Note issues as you find them, then address in batches.",
    ),
    (("meet", "call", "discuss"), "Prepare an agenda beforehand. Take notes for follow-up actions."),
    (
        ("plan", "outline", "organize"),
        "List all items first, then prioritize. Start with the most impactful areas.",
    ),
    (
        ("practice", "learn", "exercise"),
        "Focus on deliberate practice. Track what's working and what needs adjustment.",
    ),
    (
        ("create", "make", "prepare"),
        "Start with the core elements. Add refinements once the foundation is solid.",
    ),
)
DEFAULT_EXPLANATION = (
    "Focus on starting — the hardest part is the first 5 minutes. "
    "Break it into smaller steps if needed."
)


def generate_fallback_explanation(title: str) -> str:
    """Rule-based how-to line for a task that has no generated explanation."""
    lowered = title.lower()
    for keywords, explanation in EXPLANATION_RULES:
        if any(keyword in lowered for keyword in keywords):
            return explanation
    return DEFAULT_EXPLANATION


def _completed_on(plan: PlanSnapshot, day: date, tz: Optional[tzinfo]) -> bool:
    for task in plan.iter_tasks():
        if task.completed and task.completed_at and local_date(task.completed_at, tz) == day:
            return True
    return False


def find_overdue_tasks(
    plan: PlanSnapshot,
    scheduled_tasks: Sequence[ScheduledTask],
    today: date,
    tz: Optional[tzinfo] = None,
) -> List[str]:
    """Titles of incomplete tasks scheduled on a day before ``today``."""
    overdue: List[str] = []
    for scheduled in scheduled_tasks:
        week_index = scheduled.week_number - 1
        if week_index < 0 or week_index >= len(plan.weeks):
            continue
        tasks = plan.weeks[week_index].tasks
        if scheduled.task_index < 0 or scheduled.task_index >= len(tasks):
            continue
        task = tasks[scheduled.task_index]
        if task.is_done:
            continue
        scheduled_day = local_date(scheduled.scheduled_at, tz)
        if scheduled_day is not None and scheduled_day < today:
            overdue.append(task.title)
    return overdue


def get_headline(day_type: DayType, has_overdue_tasks: bool) -> str:
    if has_overdue_tasks:
        return "Let's clear the backlog first"
    if day_type == "light":
        return "Light focus today"
    if day_type == "recovery":
        return "Recovery day — no pressure"
    if day_type == "push":
        return "Strong momentum — keep it going"
    return "Focused work ahead"


def get_subtext(day_type: DayType, streak_days: int, has_overdue_tasks: bool, today_task_count: int) -> str:
    if has_overdue_tasks:
        return "Tackle overdue tasks first to get back on track."
    if day_type == "light":
        if today_task_count <= LIGHT_DAY_MAX_TASKS:
            return "Just a couple of tasks today — quality over quantity."
        return "Fewer tasks highlighted to protect your focus."
    if day_type == "recovery":
        return "You missed yesterday, but one task today keeps you moving."
    if day_type == "push":
        if streak_days >= 5:
            return f"{streak_days}-day streak! You're building real momentum."
        return f"{streak_days} days in a row — your consistency is paying off."
    return "Steady progress leads to great results."


def compute_daily_context(
    plan: Optional[PlanSnapshot],
    today_task_count: int,
    scheduled_tasks: Sequence[ScheduledTask] = (),
    streak: Optional[StreakState] = None,
    *,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> DailyContext:
    if plan is None or not plan.weeks:
        return NO_PLAN_CONTEXT.model_copy()

    streak = streak or StreakState()
    current = now or datetime.now(timezone.utc)
    today = (to_local_naive(current, tz) or current.replace(tzinfo=None)).date()
    yesterday = today - timedelta(days=1)

    skipped_yesterday = streak.last_completion_date != yesterday and not _completed_on(plan, yesterday, tz)
    recovery_suggested = skipped_yesterday and not has_completed_today(streak, today)
    has_overdue = bool(find_overdue_tasks(plan, scheduled_tasks, today, tz))

    day_type: DayType = "normal"
    focus_count = DEFAULT_FOCUS_COUNT
    if recovery_suggested:
        day_type = "recovery"
        focus_count = 1
    elif streak.count >= PUSH_STREAK_DAYS:
        day_type = "push"
    elif today_task_count <= LIGHT_DAY_MAX_TASKS:
        day_type = "light"
        focus_count = today_task_count
    elif today_task_count > FOCUS_CAP_ABOVE:
        focus_count = DEFAULT_FOCUS_COUNT

    return DailyContext(
        day_type=day_type,
        has_overdue_tasks=has_overdue,
        recovery_suggested=recovery_suggested,
        focus_count=focus_count,
        headline=get_headline(day_type, has_overdue),
        subtext=get_subtext(day_type, streak.count, has_overdue, today_task_count),
        streak_days=streak.count,
    )
