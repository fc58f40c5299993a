"""Database access for plan history, effort feedback, streaks and stored profiles."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Type, TypeVar
from uuid import UUID

from pydantic import BaseModel, ValidationError
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from kaamyab.api.schemas.daily_context import StreakState
from kaamyab.api.schemas.execution_profile import PersonalExecutionProfile
from kaamyab.api.schemas.operating_style import OperatingStyleProfile
from kaamyab.api.schemas.plan_history import (
    EffortFeedbackEntry,
    PlanHistoryEntry,
    parse_plan_snapshot,
)
from kaamyab.db.models.effort_feedback import EffortFeedback
from kaamyab.db.models.plan_history import PlanHistory
from kaamyab.db.models.user import User
from kaamyab.db.models.user_streak import UserStreak

logger = logging.getLogger(__name__)

OPERATING_STYLE_KEY = "operating_style_profile"
EXECUTION_PROFILE_KEY = "execution_profile"

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_or_create_user(db: Session, user_id: UUID) -> User:
    """Fetch an existing user or create a new row safely."""
    user = db.get(User, user_id)
    if user:
        return user

    user = User(id=user_id)
    db.add(user)
    try:
        db.flush()
        return user
    except IntegrityError:
        db.rollback()
        existing = db.get(User, user_id)
        if existing:
            return existing
        raise


class ProfileRepository:
    """Profiles stored as JSON under well-known keys of ``users.profession_details``.

    Read and write failures are logged and reported as ``None``/``False`` so
    analytics callers never fail on the store.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _load(self, user_id: UUID, key: str, model: Type[ModelT]) -> Optional[ModelT]:
        try:
            user = self.db.get(User, user_id)
        except SQLAlchemyError:
            logger.exception("Failed to load %s for user %s", key, user_id)
            self.db.rollback()
            return None
        if user is None or not isinstance(user.profession_details, dict):
            return None
        raw = user.profession_details.get(key)
        if raw is None:
            return None
        try:
            return model.model_validate(raw)
        except ValidationError:
            logger.warning("Stored %s for user %s is invalid; ignoring it", key, user_id)
            return None

    def _save(self, user_id: UUID, key: str, value: BaseModel) -> bool:
        try:
            user = get_or_create_user(self.db, user_id)
            details: Dict[str, Any] = dict(user.profession_details or {})
            details[key] = value.model_dump(mode="json")
            # Reassign so the JSON column is flagged dirty.
            user.profession_details = details
            self.db.add(user)
            self.db.commit()
        except SQLAlchemyError:
            logger.exception("Failed to save %s for user %s", key, user_id)
            self.db.rollback()
            return False
        return True

    def get_operating_style(self, user_id: UUID) -> Optional[OperatingStyleProfile]:
        return self._load(user_id, OPERATING_STYLE_KEY, OperatingStyleProfile)

    def save_operating_style(self, user_id: UUID, profile: OperatingStyleProfile) -> bool:
        return self._save(user_id, OPERATING_STYLE_KEY, profile)

    def get_execution_profile(self, user_id: UUID) -> Optional[PersonalExecutionProfile]:
        return self._load(user_id, EXECUTION_PROFILE_KEY, PersonalExecutionProfile)

    def save_execution_profile(self, user_id: UUID, profile: PersonalExecutionProfile) -> bool:
        return self._save(user_id, EXECUTION_PROFILE_KEY, profile)


class HistoryRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def add(
        self,
        user_id: UUID,
        plan_snapshot: Dict[str, Any],
        *,
        is_strategic: Optional[bool] = None,
        completed_at: Optional[datetime] = None,
    ) -> PlanHistory:
        """Archive a finished plan; totals are derived from the snapshot."""
        snapshot = parse_plan_snapshot(plan_snapshot)
        tasks = snapshot.iter_tasks()
        get_or_create_user(self.db, user_id)
        row = PlanHistory(
            user_id=user_id,
            total_tasks=len(tasks),
            completed_tasks=sum(1 for task in tasks if task.is_done),
            total_weeks=len(snapshot.weeks),
            is_strategic=is_strategic if is_strategic is not None else snapshot.is_strategic_plan,
            plan_snapshot=plan_snapshot,
            completed_at=completed_at or datetime.now(timezone.utc),
        )
        self.db.add(row)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(row)
        return row

    def list_rows(self, user_id: UUID) -> List[PlanHistory]:
        return (
            self.db.query(PlanHistory)
            .filter(PlanHistory.user_id == user_id)
            .order_by(desc(PlanHistory.completed_at))
            .all()
        )

    def list_for_user(self, user_id: UUID) -> List[PlanHistoryEntry]:
        return [PlanHistoryEntry.model_validate(row) for row in self.list_rows(user_id)]

    def count_for_user(self, user_id: UUID) -> int:
        return self.db.query(PlanHistory).filter(PlanHistory.user_id == user_id).count()

    def user_ids_with_history(self) -> List[UUID]:
        rows = self.db.query(PlanHistory.user_id).distinct().all()
        return [row[0] for row in rows]


class EffortFeedbackRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def record(
        self,
        user_id: UUID,
        task_key: str,
        effort: str,
        recorded_at: Optional[datetime] = None,
    ) -> EffortFeedback:
        """Insert or replace the feedback for one task position."""
        get_or_create_user(self.db, user_id)
        row = (
            self.db.query(EffortFeedback)
            .filter(EffortFeedback.user_id == user_id, EffortFeedback.task_key == task_key)
            .one_or_none()
        )
        if row is None:
            row = EffortFeedback(user_id=user_id, task_key=task_key)
        row.effort = effort
        row.recorded_at = recorded_at or datetime.now(timezone.utc)
        self.db.add(row)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(row)
        return row

    def list_for_user(self, user_id: UUID) -> List[EffortFeedbackEntry]:
        rows = (
            self.db.query(EffortFeedback)
            .filter(EffortFeedback.user_id == user_id)
            .order_by(EffortFeedback.recorded_at)
            .all()
        )
        return [
            EffortFeedbackEntry(
                task_id=row.task_key,
                effort=row.effort,
                timestamp=row.recorded_at.isoformat(),
            )
            for row in rows
        ]


class StreakRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, user_id: UUID) -> StreakState:
        row = self.db.get(UserStreak, user_id)
        if row is None:
            return StreakState()
        return StreakState(count=row.count, last_completion_date=row.last_completion_date)

    def save(self, user_id: UUID, state: StreakState) -> StreakState:
        get_or_create_user(self.db, user_id)
        row = self.db.get(UserStreak, user_id)
        if row is None:
            row = UserStreak(user_id=user_id)
        row.count = state.count
        row.last_completion_date = state.last_completion_date
        self.db.add(row)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return state
