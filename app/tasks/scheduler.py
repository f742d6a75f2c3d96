"""
Background Task Scheduler using APScheduler.

Runs the fetch-and-record pipeline for every configured branch once a day.
"""
import logging
from typing import Iterable, List

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import Settings
from app.services.pipeline import BatchFetchResult, SkippedTestsPipeline

logger = logging.getLogger(__name__)

DAILY_FETCH_JOB_ID = 'daily_skipped_fetch'

# Global scheduler instance
scheduler = AsyncIOScheduler()


def daily_fetch_task(pipeline: SkippedTestsPipeline, branches: List[str]) -> BatchFetchResult:
    """
    Fetch and record every branch, one after another.

    A failing branch is logged and does not stop the others.
    """
    logger.info(f"[cron] Daily fetch triggered for branches: {', '.join(branches)}")
    batch = pipeline.run_for_branches(branches)
    if batch.failed:
        logger.warning(f"[cron] Daily fetch failed for: {', '.join(sorted(batch.failed))}")
    logger.info(
        f"[cron] Daily fetch finished: {len(batch.succeeded)} succeeded, {len(batch.failed)} failed"
    )
    return batch


def start_scheduler(pipeline: SkippedTestsPipeline, settings: Settings) -> None:
    """
    Schedule the daily fetch and start the APScheduler instance.

    This is called during FastAPI lifespan startup.
    """
    if not settings.AUTO_FETCH_ENABLED:
        logger.info("Auto-fetch disabled, scheduler not started")
        return

    branches = settings.fetch_branches
    if not branches:
        logger.warning("FETCH_BRANCHES is empty, scheduler not started")
        return

    schedule_daily_fetch(pipeline, branches, settings.FETCH_CRON_HOUR, settings.FETCH_CRON_MINUTE)

    scheduler.start()
    logger.info(
        f"Daily fetch scheduled at {settings.FETCH_CRON_HOUR:02d}:{settings.FETCH_CRON_MINUTE:02d} "
        f"for branches: {', '.join(branches)}"
    )


def schedule_daily_fetch(
    pipeline: SkippedTestsPipeline,
    branches: Iterable[str],
    hour: int,
    minute: int = 0,
) -> None:
    """Add or replace the daily fetch job."""
    scheduler.add_job(
        daily_fetch_task,
        trigger=CronTrigger(hour=hour, minute=minute),
        id=DAILY_FETCH_JOB_ID,
        replace_existing=True,
        max_instances=1,  # Prevent overlapping runs
        name='Daily Skipped Tests Fetch',
        kwargs={'pipeline': pipeline, 'branches': list(branches)},
    )


def stop_scheduler() -> None:
    """
    Stop the APScheduler instance.

    This is called during FastAPI lifespan shutdown.
    """
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Scheduler stopped")


def get_scheduler_status() -> dict:
    """
    Get current scheduler status.

    Returns:
        Dict with scheduler info
    """
    job = scheduler.get_job(DAILY_FETCH_JOB_ID)

    if job:
        next_run = job.next_run_time
        return {
            'running': scheduler.running,
            'job_enabled': True,
            'next_run': next_run.isoformat() if next_run else None,
            'job_name': job.name
        }
    return {
        'running': scheduler.running,
        'job_enabled': False,
        'next_run': None,
        'job_name': None
    }
