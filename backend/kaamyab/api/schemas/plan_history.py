"""Schemas for archived plans, their snapshots and effort feedback.

Plan snapshots arrive as loosely-shaped JSON. They are validated once here:
unknown keys are ignored, a malformed week or task is dropped on its own, and
a snapshot that is not an object at all becomes an empty snapshot.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

ExecutionState = Literal["idle", "doing", "paused", "done"]
EffortLevel = Literal["easy", "okay", "hard"]


class SnapshotTask(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    title: str = ""
    priority: Optional[str] = None
    completed: bool = False
    completed_at: Optional[str] = None
    deferred_to: Optional[str] = None
    execution_state: Optional[ExecutionState] = None
    estimated_hours: Optional[float] = None
    time_spent_seconds: Optional[float] = None
    scheduled_at: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("completed", mode="before")
    @classmethod
    def _default_completed(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("completed_at", "deferred_to", "scheduled_at", "priority", mode="before")
    @classmethod
    def _text_or_none(cls, value: Any) -> Any:
        return value if isinstance(value, str) else None

    @field_validator("estimated_hours", "time_spent_seconds", mode="before")
    @classmethod
    def _number_or_none(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError):
            return None
        # NaN and Infinity are valid JSON for json.loads but poison the averages.
        return number if math.isfinite(number) else None

    @field_validator("execution_state", mode="before")
    @classmethod
    def _drop_unknown_state(cls, value: Any) -> Any:
        if value not in {"idle", "doing", "paused", "done"}:
            return None
        return value

    @property
    def is_done(self) -> bool:
        return self.execution_state == "done" or self.completed


class SnapshotWeek(BaseModel):
    model_config = ConfigDict(extra="ignore")

    week: int = 0
    focus: str = ""
    tasks: List[SnapshotTask] = Field(default_factory=list)

    @field_validator("week", mode="before")
    @classmethod
    def _week_number_or_zero(cls, value: Any) -> int:
        if isinstance(value, bool):
            return 0
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip().isdigit():
            return int(value)
        return 0

    @field_validator("focus", mode="before")
    @classmethod
    def _default_focus(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("tasks", mode="before")
    @classmethod
    def _keep_valid_tasks(cls, value: Any) -> List[SnapshotTask]:
        return _validate_each(value, SnapshotTask)


class PlanSnapshot(BaseModel):
    model_config = ConfigDict(extra="ignore")

    weeks: List[SnapshotWeek] = Field(default_factory=list)
    day_closures: List[Any] = Field(default_factory=list)
    is_strategic_plan: bool = False

    @field_validator("weeks", mode="before")
    @classmethod
    def _keep_valid_weeks(cls, value: Any) -> List[SnapshotWeek]:
        return _validate_each(value, SnapshotWeek)

    @field_validator("day_closures", mode="before")
    @classmethod
    def _closures_list(cls, value: Any) -> List[Any]:
        return value if isinstance(value, list) else []

    @field_validator("is_strategic_plan", mode="before")
    @classmethod
    def _strategic_flag(cls, value: Any) -> bool:
        return bool(value)

    def iter_tasks(self) -> List[SnapshotTask]:
        return [task for week in self.weeks for task in week.tasks]


def _validate_each(value: Any, model: type[BaseModel]) -> list:
    if not isinstance(value, list):
        return []
    items = []
    for raw in value:
        if isinstance(raw, model):
            items.append(raw)
            continue
        if not isinstance(raw, dict):
            continue
        try:
            items.append(model.model_validate(raw))
        except ValidationError as exc:
            logger.debug("Dropping malformed %s: %s", model.__name__, exc.error_count())
    return items


def parse_plan_snapshot(raw: Any) -> PlanSnapshot:
    """Turn stored or posted snapshot JSON into a PlanSnapshot, never raising."""
    if isinstance(raw, PlanSnapshot):
        return raw
    if not isinstance(raw, dict):
        return PlanSnapshot()
    try:
        return PlanSnapshot.model_validate(raw)
    except ValidationError:
        logger.debug("Plan snapshot failed validation; treating as empty")
        return PlanSnapshot()


class PlanHistoryEntry(BaseModel):
    """One archived planning cycle as consumed by the analytics."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    total_tasks: int = 0
    completed_tasks: int = 0
    total_weeks: int = 0
    is_strategic: Optional[bool] = None
    plan_snapshot: PlanSnapshot = Field(default_factory=PlanSnapshot)
    completed_at: datetime

    @field_validator("plan_snapshot", mode="before")
    @classmethod
    def _parse_snapshot(cls, value: Any) -> PlanSnapshot:
        return parse_plan_snapshot(value)


class EffortFeedbackEntry(BaseModel):
    task_id: str
    effort: EffortLevel
    timestamp: str

    @field_validator("effort", mode="before")
    @classmethod
    def _normalize_effort(cls, value: Any) -> Any:
        # Older clients recorded the middle option as "normal".
        if isinstance(value, str) and value.lower() == "normal":
            return "okay"
        return value.lower() if isinstance(value, str) else value


class PlanHistoryCreateRequest(BaseModel):
    user_id: UUID
    plan_snapshot: dict
    is_strategic: Optional[bool] = None
    completed_at: Optional[datetime] = None


class PlanHistoryItem(BaseModel):
    id: UUID
    total_tasks: int
    completed_tasks: int
    total_weeks: int
    is_strategic: Optional[bool]
    completed_at: datetime


class PlanHistoryCreateResponse(BaseModel):
    plan: PlanHistoryItem
    request_id: str


class PlanHistoryListResponse(BaseModel):
    user_id: UUID
    plans: List[PlanHistoryItem]
    request_id: str


class EffortFeedbackRequest(BaseModel):
    user_id: UUID
    week_index: int = Field(..., ge=0)
    task_index: int = Field(..., ge=0)
    effort: EffortLevel

    @field_validator("effort", mode="before")
    @classmethod
    def _normalize_effort(cls, value: Any) -> Any:
        if isinstance(value, str) and value.lower() == "normal":
            return "okay"
        return value


class EffortFeedbackResponse(BaseModel):
    task_id: str
    effort: EffortLevel
    recorded_at: datetime
    request_id: str
