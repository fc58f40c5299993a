"""Schemas for the Today view context and completion streaks."""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

DayType = Literal["light", "normal", "recovery", "push"]


class ScheduledTask(BaseModel):
    week_number: int
    task_index: int
    scheduled_at: str


class StreakState(BaseModel):
    count: int = 0
    last_completion_date: Optional[date] = None


class DailyContext(BaseModel):
    day_type: DayType
    has_overdue_tasks: bool
    recovery_suggested: bool
    focus_count: int
    headline: str
    subtext: str
    streak_days: int


class DailyContextRequest(BaseModel):
    user_id: UUID
    plan: Optional[Dict[str, Any]] = None
    today_task_count: int = Field(0, ge=0)
    scheduled_tasks: List[ScheduledTask] = Field(default_factory=list)


class DailyContextResponse(BaseModel):
    user_id: UUID
    context: DailyContext
    request_id: str


class TaskExplanationResponse(BaseModel):
    title: str
    explanation: str
    request_id: str


class StreakCompletionRequest(BaseModel):
    user_id: UUID


class StreakResponse(BaseModel):
    user_id: UUID
    count: int
    last_completion_date: Optional[date]
    completed_today: bool
    request_id: str
