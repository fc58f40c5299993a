"""Schemas for the personal execution profile and calibration output."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

EstimationPattern = Literal["optimistic", "accurate", "pessimistic"]
BalanceAssessment = Literal["planning-heavy", "balanced", "execution-heavy"]
ConfidenceLevel = Literal["low", "medium", "high"]


class TaskTypeBiases(BaseModel):
    setup_heavy: float = 0.0
    coordination: float = 0.0
    execution: float = 0.0


class EstimationTrend(BaseModel):
    current_pattern: EstimationPattern = "accurate"
    average_variance_percent: float = 0.0
    consistency_score: float = 50.0
    task_type_biases: TaskTypeBiases = Field(default_factory=TaskTypeBiases)


class CompletionRateByLoad(BaseModel):
    light: float = 0.9
    normal: float = 0.75
    heavy: float = 0.5


class OverloadTendency(BaseModel):
    optimal_daily_tasks: int = 3
    completion_rate_by_load: CompletionRateByLoad = Field(default_factory=CompletionRateByLoad)
    overload_threshold: int = 5


class DelayPatterns(BaseModel):
    front_loading_preference: bool = False
    rework_frequency: float = 0.0
    context_switch_impact: float = 0.0


class PlanningBalance(BaseModel):
    planning_time_ratio: float = 0.3
    execution_time_ratio: float = 0.7
    balance_assessment: BalanceAssessment = "balanced"


class ProductivityBias(BaseModel):
    early_day_preference: bool = True
    peak_velocity_period: str = "morning"
    sustained_focus_duration: int = 90


class CycleMetrics(BaseModel):
    average_overrun_percent: float
    completion_rate: int
    completion_smoothness: int
    planning_alignment: int
    late_stage_adjustments: int = 0
    tasks_completed: int
    total_time_spent_seconds: float


class CyclePatterns(BaseModel):
    front_loaded: bool
    consistent_pace: bool
    rework_required: bool = False


class PlanCycleSnapshot(BaseModel):
    snapshot_id: str
    snapshot_date: datetime
    plan_type: Literal["strategic", "standard"]
    metrics: CycleMetrics
    patterns: CyclePatterns


class ProgressHistory(BaseModel):
    snapshots: List[PlanCycleSnapshot] = Field(default_factory=list)
    last_snapshot_date: Optional[datetime] = None
    total_plans_tracked: int = 0


class PersonalExecutionProfile(BaseModel):
    estimation_accuracy_trend: EstimationTrend = Field(default_factory=EstimationTrend)
    overload_tendency: OverloadTendency = Field(default_factory=OverloadTendency)
    delay_patterns: DelayPatterns = Field(default_factory=DelayPatterns)
    planning_vs_execution: PlanningBalance = Field(default_factory=PlanningBalance)
    productivity_bias: ProductivityBias = Field(default_factory=ProductivityBias)
    last_updated: datetime
    data_points_count: int = 0
    plans_analyzed: int = 0
    confidence_level: ConfidenceLevel = "low"
    progress_history: Optional[ProgressHistory] = None


class ExecutionProfileObservation(BaseModel):
    """Observations extracted from one plan; every section may be missing."""

    estimation_accuracy_trend: Optional[EstimationTrend] = None
    overload_tendency: Optional[OverloadTendency] = None
    delay_patterns: Optional[DelayPatterns] = None
    planning_vs_execution: Optional[PlanningBalance] = None
    data_points_count: Optional[int] = None
    last_updated: Optional[datetime] = None

    @property
    def is_empty(self) -> bool:
        return not self.data_points_count


class CalibrationInsight(BaseModel):
    id: str
    category: Literal["estimation", "workload", "planning", "productivity"]
    text: str
    severity: Literal["info", "observation", "pattern"]


class PlanningHint(BaseModel):
    id: str
    text: str
    step: Literal["project", "deadline", "strategic", "general"]


class PatternChange(BaseModel):
    field: str
    label: str
    direction: Literal["improved", "declined", "stable"]
    detail: str


class EffortBreakdown(BaseModel):
    easy_count: int = 0
    okay_count: int = 0
    hard_count: int = 0
    total_with_feedback: int = 0
    # Share of tracked time (with feedback) spent on tasks rated hard, 0-100.
    hard_tasks_time_percent: int = 0


class TaskVariance(BaseModel):
    title: str
    variance_percent: float


class CompletionVelocitySummary(BaseModel):
    tasks_per_day: float = 0.0
    average_time_per_task_seconds: float = 0.0
    fastest_task: Optional[TaskVariance] = None
    slowest_task: Optional[TaskVariance] = None


class PlanExecutionSummary(BaseModel):
    """How the submitted plan went on its own, before merging into the profile."""

    plan_progress_percent: int = 0
    tasks_with_tracked_time: int = 0
    total_time_spent_seconds: float = 0.0
    estimation_pattern: EstimationPattern = "accurate"
    average_variance_percent: float = 0.0
    effort: EffortBreakdown = Field(default_factory=EffortBreakdown)
    velocity: CompletionVelocitySummary = Field(default_factory=CompletionVelocitySummary)


class ExecutionObservationRequest(BaseModel):
    user_id: UUID
    plan_data: Dict[str, Any]
    is_strategic: bool = False


class ExecutionObservationResponse(BaseModel):
    user_id: UUID
    profile: Optional[PersonalExecutionProfile]
    previous_profile: Optional[PersonalExecutionProfile]
    changes: List[PatternChange]
    insights: List[CalibrationInsight]
    plan_summary: PlanExecutionSummary
    request_id: str


class ExecutionProfileResponse(BaseModel):
    user_id: UUID
    profile: Optional[PersonalExecutionProfile]
    insights: List[CalibrationInsight]
    request_id: str


class PlanningHintResponse(BaseModel):
    user_id: UUID
    hint: Optional[PlanningHint]
    request_id: str
