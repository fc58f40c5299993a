"""Lenient ISO-8601 parsing for timestamps stored inside plan JSON."""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone, tzinfo
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


def parse_timestamp(raw: Any) -> Optional[datetime]:
    """Parse an ISO string (``Z`` suffix allowed); ``None`` for anything unparseable."""
    if isinstance(raw, datetime):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def convert_timezone(moment: datetime, tz: tzinfo) -> Optional[datetime]:
    """``moment`` in ``tz``; naive values are read as UTC.

    ISO strings near ``datetime.min``/``datetime.max`` parse fine but cannot be
    shifted across an offset. Those come back as ``None`` so callers skip them
    like any other unusable timestamp.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    try:
        return moment.astimezone(tz)
    except (OverflowError, ValueError):
        logger.debug("Timestamp %s out of range for %s", moment.isoformat(), tz)
        return None


def to_local_naive(moment: datetime, tz: Optional[tzinfo]) -> Optional[datetime]:
    """Express ``moment`` as wall-clock time in ``tz`` (UTC when unset), without tzinfo."""
    if moment.tzinfo is None:
        return moment
    local = convert_timezone(moment, tz or timezone.utc)
    return local.replace(tzinfo=None) if local is not None else None


def local_date(raw: Any, tz: Optional[tzinfo]) -> Optional[date]:
    moment = parse_timestamp(raw)
    if moment is None:
        return None
    local = to_local_naive(moment, tz)
    return local.date() if local is not None else None


def resolve_timezone(name: Optional[str]) -> tzinfo:
    """ZoneInfo for ``name``; unknown or empty names fall back to UTC."""
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r; using UTC", name)
        return timezone.utc
