"""Schemas for job operations endpoints."""
from __future__ import annotations

from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel


class JobRunRequest(BaseModel):
    job: Literal["operating_style"] = "operating_style"
    user_id: Optional[UUID] = None


class JobRunResponse(BaseModel):
    job: str
    users_processed: int
    profiles_written: int
    skipped: int = 0
    request_id: str
