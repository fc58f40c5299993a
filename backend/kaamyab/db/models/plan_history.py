"""Archived plan ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, func
from sqlalchemy.dialects.postgresql import UUID

from kaamyab.db.base import Base
from kaamyab.db.types import JSONBCompat


class PlanHistory(Base):
    __tablename__ = "plan_history"
    __table_args__ = (
        Index("ix_plan_history_user_id", "user_id"),
        Index("ix_plan_history_completed_at", "completed_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    total_tasks = Column(Integer, nullable=False, default=0)
    completed_tasks = Column(Integer, nullable=False, default=0)
    total_weeks = Column(Integer, nullable=False, default=0)
    is_strategic = Column(Boolean, nullable=True)
    plan_snapshot = Column(JSONBCompat, nullable=False, default=dict)
    completed_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
