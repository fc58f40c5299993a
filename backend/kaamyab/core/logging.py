"""Logging setup shared by the API process and the scheduler worker."""
from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any, Dict

from kaamyab.core.context import get_request_id

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s"

# Third-party loggers that are chatty at INFO.
QUIET_LOGGERS = ("apscheduler", "httpx", "openai", "opik")

_configured = False


class RequestIdFilter(logging.Filter):
    """Stamp every record with the active request id ("-" outside requests)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


def resolve_log_level(value: str | None) -> str:
    """Upper-cased level name; unknown names fall back to INFO."""
    level = (value or "").strip().upper()
    return level if level in logging.getLevelNamesMapping() else "INFO"


def build_logging_config(log_level: str) -> Dict[str, Any]:
    quiet_level = "DEBUG" if log_level == "DEBUG" else "WARNING"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": LOG_FORMAT}},
        "filters": {"request_id": {"()": "kaamyab.core.logging.RequestIdFilter"}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": log_level,
                "filters": ["request_id"],
            }
        },
        "loggers": {name: {"level": quiet_level} for name in QUIET_LOGGERS},
        "root": {"handlers": ["console"], "level": log_level},
    }


def configure_logging(*, log_level: str = "INFO") -> None:
    """Configure logging once per process; later calls are ignored."""
    global _configured

    if _configured:
        return

    level = resolve_log_level(log_level)
    dictConfig(build_logging_config(level))
    logger = logging.getLogger(__name__)
    if level != (log_level or "").strip().upper():
        logger.warning("Unknown LOG_LEVEL %r; logging at INFO", log_level)
    logger.debug("Logging configured at %s", level)
    _configured = True
