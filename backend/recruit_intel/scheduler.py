"""
Background Scheduler - optional periodic course sync

When SYNC_INTERVAL_HOURS is greater than zero an APScheduler
AsyncIOScheduler runs a full course sync on that interval, each run
tracked by its own course_sync job. With the default of 0 no scheduler is
started and syncs only happen on request.
"""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from recruit_intel.models import JobType
from recruit_intel.pipeline import Pipeline

logger = logging.getLogger(__name__)


async def scheduled_course_sync(pipeline: Pipeline) -> None:
    """Run one tracked sync of every course, in the scheduler's task."""
    if not pipeline.reconciler.lms.is_configured:
        logger.warning("Skipping scheduled course sync: LMS API key not configured")
        return
    job = await pipeline.tracker.create(JobType.COURSE_SYNC, {"scheduled": True})
    job = await pipeline.run_course_sync(job.id)
    logger.info(f"Scheduled course sync finished: job {job.id} {job.status}")


def start_scheduler(pipeline: Pipeline, interval_hours: int) -> Optional[AsyncIOScheduler]:
    """Start the periodic sync; returns None when disabled."""
    if interval_hours <= 0:
        logger.info("Periodic course sync disabled")
        return None

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        scheduled_course_sync,
        trigger=IntervalTrigger(hours=interval_hours),
        args=[pipeline],
        id="sync_courses",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(f"Scheduler started: syncing courses every {interval_hours} hours")
    return scheduler


def stop_scheduler(scheduler: Optional[AsyncIOScheduler]) -> None:
    if scheduler is not None:
        scheduler.shutdown()
