"""Dedicated APScheduler worker process."""
from __future__ import annotations

import logging
import signal
import threading

from apscheduler.schedulers.background import BackgroundScheduler

from kaamyab.core.config import settings
from kaamyab.core.logging import configure_logging
from kaamyab.db.session import SessionLocal
from kaamyab.observability.client import flush_opik
from kaamyab.services.job_runner import run_operating_style_for_all_users


logger = logging.getLogger(__name__)

STYLE_JOB_ID = "operating_style_refresh"


def main() -> None:
    configure_logging(log_level=settings.log_level)
    logger.info("Scheduler worker starting (enabled=%s)", settings.scheduler_enabled)

    scheduler = BackgroundScheduler(timezone=settings.scheduler_timezone)

    if settings.scheduler_enabled:
        register_jobs(scheduler)
        scheduler.start()
        if settings.jobs_run_on_startup:
            logger.info("Running style refresh once on startup")
            run_style_refresh_job()
    else:
        logger.warning("Scheduler disabled via config; worker will idle")

    stop_event = threading.Event()

    def shutdown(signum, frame):  # pragma: no cover - signal handler
        logger.info("Scheduler worker shutting down (signal=%s)", signum)
        if scheduler.running:
            scheduler.shutdown(wait=False)
        flush_opik()
        stop_event.set()

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    try:
        stop_event.wait()
    except KeyboardInterrupt:  # pragma: no cover - manual stop
        shutdown(signal.SIGINT, None)


def register_jobs(scheduler: BackgroundScheduler) -> None:
    scheduler.add_job(
        run_style_refresh_job,
        trigger="cron",
        day_of_week=str(settings.style_refresh_day),
        hour=settings.style_refresh_hour,
        minute=settings.style_refresh_minute,
        id=STYLE_JOB_ID,
        replace_existing=True,
    )
    logger.info(
        "Registered style refresh (day=%s, time=%02d:%02d %s)",
        settings.style_refresh_day,
        settings.style_refresh_hour,
        settings.style_refresh_minute,
        settings.scheduler_timezone,
    )


def run_style_refresh_job() -> None:
    session = SessionLocal()
    try:
        result = run_operating_style_for_all_users(session)
        logger.info(
            "Style refresh complete: users=%s, profiles=%s, skipped=%s",
            result.users_processed,
            result.profiles_written,
            result.skipped_for_insufficient_data,
        )
    except Exception:  # pragma: no cover - defensive guard
        logger.exception("Style refresh job failed")
    finally:
        session.close()


if __name__ == "__main__":  # pragma: no cover - manual launch
    main()
