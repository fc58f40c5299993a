"""Schemas for the operating style profile."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

DimensionId = Literal[
    "planning_density",
    "execution_follow_through",
    "adjustment_behavior",
    "cadence_preference",
]


class OperatingStyleMetrics(BaseModel):
    total_plans: int = 0
    total_tasks: int = 0
    total_completed: int = 0
    total_weeks: int = 0
    avg_tasks_per_week: float = 0.0
    avg_completion_rate: float = 0.0
    plans_with_closures: int = 0
    deferral_count: int = 0
    split_task_count: int = 0
    morning_completions: int = 0
    afternoon_completions: int = 0
    evening_completions: int = 0


class OperatingStyleDimensions(BaseModel):
    """Each value sits on a spectrum between two neutral poles (0 = left label)."""

    planning_density: float = Field(0.5, ge=0.0, le=1.0)
    execution_follow_through: float = Field(0.5, ge=0.0, le=1.0)
    adjustment_behavior: float = Field(0.5, ge=0.0, le=1.0)
    cadence_preference: float = Field(0.5, ge=0.0, le=1.0)


class DimensionMeta(BaseModel):
    id: DimensionId
    left_label: str
    right_label: str
    description: str


class OperatingStyleProfile(BaseModel):
    dimensions: OperatingStyleDimensions
    metrics: OperatingStyleMetrics
    ai_summary: Optional[str] = None
    summary_generated_at: Optional[datetime] = None
    data_version_hash: str
    analyzed_plans_count: int = 0
    generated_at: datetime


class OperatingStyleResponse(BaseModel):
    user_id: UUID
    profile: Optional[OperatingStyleProfile]
    has_enough_data: bool
    plan_count: int
    dimensions_meta: List[DimensionMeta]
    request_id: str


class OperatingStyleRegenerateRequest(BaseModel):
    user_id: UUID


class OperatingStyleHintResponse(BaseModel):
    user_id: UUID
    hint: Optional[str]
    request_id: str
