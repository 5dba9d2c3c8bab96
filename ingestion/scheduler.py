import logging
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from core.config import settings
from ingestion.service import IngestionService, get_ingestion_service

logger = logging.getLogger(__name__)


class IngestionScheduler:
    """Runs yesterday's ingest for every pulled platform once a day (UTC)"""

    def __init__(
        self,
        service_factory: Callable[[], IngestionService] = get_ingestion_service,
        hour: Optional[int] = None
    ):
        self.scheduler = AsyncIOScheduler(timezone="UTC")
        self.service_factory = service_factory
        self.hour = settings.DAILY_INGEST_HOUR if hour is None else hour

    async def run_daily_job(self):
        """Job to run the daily ingest for each platform"""
        logger.info("Scheduler: Starting daily ingest")
        try:
            service = self.service_factory()
        except Exception as e:
            logger.error(f"Scheduler: cannot build ingestion service - {e}")
            return

        for platform in service.pull_platforms:
            try:
                result = await service.run_daily_ingest(platform)
                logger.info(f"Scheduler: {platform.value} inserted {result['inserted']} rows")
            except Exception as e:
                # One platform must not stop the others
                logger.error(f"Scheduler: {platform.value} daily ingest failed - {e}")

    def start(self):
        """Start the scheduler"""
        self.scheduler.add_job(
            self.run_daily_job,
            trigger=CronTrigger(hour=self.hour, minute=0, timezone="UTC"),
            id="daily_ingest",
            replace_existing=True
        )
        self.scheduler.start()
        logger.info(f"Ingestion scheduler started (daily at {self.hour:02d}:00 UTC)")

    def stop(self):
        self.scheduler.shutdown()
        logger.info("Ingestion scheduler stopped")
