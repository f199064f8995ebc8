import logging
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from classvoice.core.config import settings
from classvoice.core.database import SessionLocal
from classvoice.services.maintenance import MaintenanceService
from classvoice.utils.ai import ai_service

logger = logging.getLogger(__name__)


def auto_end_lectures():
    """
    Scheduled task ending active lectures past their scheduled end time.
    Same work as the /cron/check-lecture-end endpoint.
    """
    db = SessionLocal()
    try:
        result = MaintenanceService(db).run_auto_end()
        logger.info(
            f"[{datetime.now(timezone.utc)}] Auto-end completed. "
            f"Ended {result['processed_count']} lectures."
        )
    except Exception as e:
        logger.error(f"Error during auto-end: {e}")
    finally:
        db.close()


async def auto_summarize_lectures():
    """
    Scheduled task summarizing lectures ended long enough ago.
    Same work as the /cron/summarize-lectures endpoint.
    """
    db = SessionLocal()
    try:
        result = await MaintenanceService(db, ai_service).run_auto_summarize()
        logger.info(
            f"[{datetime.now(timezone.utc)}] Auto-summarize completed. "
            f"{result['success_count']} succeeded, {result['error_count']} failed."
        )
    except Exception as e:
        logger.error(f"Error during auto-summarize: {e}")
    finally:
        db.close()


def start_scheduler():
    """
    Initialize and start the in-process scheduler for the maintenance jobs.
    Only used when SCHEDULER_ENABLED is set; otherwise an external cron
    calls the /cron endpoints.
    """
    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        auto_end_lectures,
        trigger=IntervalTrigger(minutes=settings.auto_end_interval_minutes),
        id="auto_end_lectures",
        name="End lectures past their scheduled end",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.add_job(
        auto_summarize_lectures,
        trigger=IntervalTrigger(minutes=settings.auto_summarize_interval_minutes),
        id="auto_summarize_lectures",
        name="Summarize ended lectures",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.start()
    logger.info("Lecture maintenance scheduler started.")

    return scheduler


def shutdown_scheduler(scheduler: AsyncIOScheduler):
    """
    Gracefully shutdown the scheduler.
    """
    if scheduler:
        scheduler.shutdown()
        logger.info("Lecture maintenance scheduler shut down.")
