"""CF Monitor — Scheduler Jobs.

APScheduler interval job that refreshes every zone and stores a snapshot.
Fires once at startup, then every ``refresh_interval_hours``.
"""

from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlmodel import Session

from cfmonitor.config import settings
from cfmonitor.database import engine
from cfmonitor.analyzer.pipeline import refresh_and_store
from cfmonitor.api.deps import get_accounts
from cfmonitor.core.logging import get_logger

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler(timezone=timezone.utc)

REFRESH_JOB_ID = "refresh_analytics"


async def refresh_job():
    """Scheduled refresh. Failures are logged; the schedule keeps running."""
    logger.info("Scheduled refresh starting...")
    try:
        with Session(engine) as session:
            payload = await refresh_and_store(session, accounts=get_accounts())
        logger.info(f"Scheduled refresh complete: {len(payload.accounts)} accounts")
    except Exception as e:
        logger.error(f"Scheduled refresh failed: {e}")


def start_scheduler():
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    job_kwargs = {}
    if settings.refresh_on_startup:
        job_kwargs["next_run_time"] = datetime.now(timezone.utc)

    scheduler.add_job(
        refresh_job,
        "interval",
        hours=settings.refresh_interval_hours,
        id=REFRESH_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=600,
        **job_kwargs,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started. Refresh every {settings.refresh_interval_hours}h"
    )


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
