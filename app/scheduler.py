from apscheduler.schedulers.asyncio import AsyncIOScheduler
from app.services.dedup_cache import DedupCache
import logging

# Bound to the event loop it starts on, so one is built per application run
scheduler: AsyncIOScheduler | None = None

logger = logging.getLogger(__name__)


def start_background_jobs(dedup_cache: DedupCache) -> AsyncIOScheduler:
    """Register periodic jobs and start the scheduler on the running loop."""
    global scheduler
    if scheduler is None:
        scheduler = AsyncIOScheduler()

    dedup_cache.start(scheduler)
    if not scheduler.running:
        scheduler.start()
        logger.info("[Scheduler] Started")
    return scheduler


def stop_background_jobs(dedup_cache: DedupCache) -> None:
    global scheduler
    dedup_cache.stop()
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("[Scheduler] Stopped")
    scheduler = None
