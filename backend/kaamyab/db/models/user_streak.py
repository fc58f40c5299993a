"""Completion streak ORM model."""
from __future__ import annotations

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from kaamyab.db.base import Base


class UserStreak(Base):
    __tablename__ = "user_streaks"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    count = Column(Integer, nullable=False, default=0, server_default=sa_text("0"))
    last_completion_date = Column(Date, nullable=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
