from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from typing import Optional
import asyncio
import logging

from sshed.core.config import get_settings
from sshed.services.sync import SyncService

settings = get_settings()
logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


async def periodic_sync(sync: SyncService) -> None:
    """Runs a sync pass on a fixed interval.

    Why: Filesystem events can be missed (network mounts, containers,
    editors that write through odd rename dances). A periodic pass bounds
    how long the stored graph can lag behind the file.
    """
    logger.info("Scheduler: Running periodic sync pass")
    await asyncio.to_thread(sync.run, "schedule")


class SchedulerService:
    """Manages the periodic safety-net sync job using APScheduler."""
    @staticmethod
    def start(sync: SyncService, interval_minutes: Optional[int] = None) -> bool:
        interval = settings.SYNC_INTERVAL_MINUTES if interval_minutes is None else interval_minutes
        if interval <= 0:
            logger.info("Periodic sync disabled")
            return False
        if not scheduler.running:
            scheduler.start()
        scheduler.add_job(
            periodic_sync,
            IntervalTrigger(minutes=interval),
            args=[sync],
            id="periodic_sync",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"Scheduler started, periodic sync every {interval} minute(s).")
        return True

    @staticmethod
    def shutdown():
        if scheduler.running:
            scheduler.shutdown(wait=False)
