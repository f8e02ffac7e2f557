"""
Background worker with scheduled jobs.
Runs the daily maintenance reminder sweep.
"""

import asyncio
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from worker.config import settings
from worker.jobs.maintenance_reminder_job import send_maintenance_reminders

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def main():
    """Initialize and run the worker scheduler."""
    logger.info("Starting maintenance worker...")

    scheduler = AsyncIOScheduler(timezone="UTC")

    scheduler.add_job(
        send_maintenance_reminders,
        trigger=CronTrigger.from_crontab(settings.MAINTENANCE_REMINDER_CRON, timezone="UTC"),
        id="maintenance_reminders",
        name="Send maintenance reminders",
        replace_existing=True,
    )

    # Start scheduler
    scheduler.start()
    logger.info(f"Scheduler started. Jobs: {[job.id for job in scheduler.get_jobs()]}")

    # Keep the worker running
    try:
        await asyncio.Event().wait()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutting down worker...")
        scheduler.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
