"""Batch job runner for the periodic operating style refresh."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from kaamyab.services.profile_service import load_operating_style
from kaamyab.services.repositories import HistoryRepository

logger = logging.getLogger(__name__)


@dataclass
class JobRunResult:
    users_processed: int
    profiles_written: int
    skipped_for_insufficient_data: int = 0


def run_operating_style_for_user(db: Session, user_id: UUID) -> Optional[bool]:
    """Refresh one user's profile; ``None`` when they lack enough plans."""
    result = load_operating_style(db, user_id)
    if not result.has_enough_data:
        return None
    return result.regenerated


def run_operating_style_for_all_users(
    db: Session,
    *,
    user_ids: Optional[Iterable[UUID]] = None,
) -> JobRunResult:
    ids = _normalize_user_ids(user_ids, db)
    users_processed = 0
    profiles_written = 0
    skipped = 0
    for uid in ids:
        try:
            regenerated = run_operating_style_for_user(db, uid)
        except Exception:  # pragma: no cover - defensive guard
            logger.exception("Operating style job failed for user %s", uid)
            db.rollback()
            continue
        if regenerated is None:
            skipped += 1
            logger.debug("Skipping operating style for user %s: not enough plans", uid)
            continue
        users_processed += 1
        if regenerated:
            profiles_written += 1
    return JobRunResult(
        users_processed=users_processed,
        profiles_written=profiles_written,
        skipped_for_insufficient_data=skipped,
    )


def _normalize_user_ids(user_ids: Optional[Iterable[UUID]], db: Session) -> List[UUID]:
    if user_ids is None:
        return HistoryRepository(db).user_ids_with_history()
    return list(dict.fromkeys(user_ids))
