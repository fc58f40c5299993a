"""Task effort feedback ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from kaamyab.db.base import Base


class EffortFeedback(Base):
    __tablename__ = "effort_feedback"
    __table_args__ = (
        Index("ix_effort_feedback_user_id", "user_id"),
        UniqueConstraint("user_id", "task_key", name="uq_effort_feedback_user_task"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # "<week index>-<task index>" within the active plan.
    task_key = Column(String(length=32), nullable=False)
    effort = Column(String(length=16), nullable=False)
    recorded_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
