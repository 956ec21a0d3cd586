"""Scheduler for the focus timer clock."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from src.core.config import constants, settings
from src.services.session_service import session_registry


logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = AsyncIOScheduler()


async def tick_timers() -> None:
    """Advance every open session's timer.

    Runs every tick interval. Sessions whose budget ran out are stopped,
    credited and their ledgers flushed.
    """
    completed = await session_registry.tick_all()
    if completed:
        logger.info("Timer tick completed %d focus sessions", completed)


def start_scheduler() -> None:
    """Start the scheduler and register the timer tick job.

    This should be called during FastAPI app startup.
    """
    logger.info("Starting scheduler")

    scheduler.add_job(
        tick_timers,
        trigger=IntervalTrigger(seconds=settings.tick_interval_seconds),
        id=constants.TIMER_TICK_JOB_ID,
        name="Tick Focus Timers",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    logger.info(f"Scheduled timer tick job: every {settings.tick_interval_seconds}s")

    scheduler.start()
    logger.info("Scheduler started successfully")


def stop_scheduler() -> None:
    """Stop the scheduler.

    This should be called during FastAPI app shutdown.
    """
    if not scheduler.running:
        return
    logger.info("Stopping scheduler")
    scheduler.shutdown(wait=True)
    logger.info("Scheduler stopped")
