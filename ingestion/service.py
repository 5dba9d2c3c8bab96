"""
Entry points used by routes, the scheduler and the CLI.

The credential broker is created once per process and shared by every
loader built from it, so concurrent invocations reuse one cached token.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional

from core.config import Settings, settings as default_settings
from core.credentials import CredentialBroker
from ingestion.base import AdSource
from ingestion.extractors.meta_extractor import MetaInsightsSource
from ingestion.extractors.pinterest_extractor import PinterestAdsSource
from ingestion.loaders.bigquery_loader import BigQueryLoader
from ingestion.runner import IngestionResult, IngestionRunner
from ingestion.transformers.normalizer import get_mapper
from models.base import PLATFORM_TABLES, AdPlatform
from models.date_range import DateLike, to_date

logger = logging.getLogger(__name__)

SourceFactory = Callable[[], AdSource]


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class IngestionService:
    """
    Daily ingest, backfill and push ingest for every platform.

    Meta and Pinterest are pulled; Google Ads rows are pushed to us by the
    Ads Script and only go through `ingest_rows`.
    """

    def __init__(
        self,
        loader: BigQueryLoader,
        source_factories: Dict[AdPlatform, SourceFactory],
        chunk_days: Optional[int] = None,
        today: Callable[[], date] = utc_today
    ):
        self.loader = loader
        self.source_factories = source_factories
        self.runner = IngestionRunner(loader, chunk_days=chunk_days)
        self.today = today

    @classmethod
    def from_settings(cls, settings: Settings) -> "IngestionService":
        broker = CredentialBroker.from_settings(settings)
        loader = BigQueryLoader.from_settings(settings, broker)
        return cls(
            loader=loader,
            source_factories={
                AdPlatform.META: lambda: MetaInsightsSource.from_settings(settings),
                AdPlatform.PINTEREST: lambda: PinterestAdsSource.from_settings(settings),
            },
            chunk_days=settings.CHUNK_DAYS,
        )

    @property
    def broker(self) -> CredentialBroker:
        return self.loader.broker

    @property
    def pull_platforms(self) -> List[AdPlatform]:
        return list(self.source_factories)

    def get_source(self, platform: AdPlatform) -> AdSource:
        """Build a fresh source for one invocation"""
        try:
            factory = self.source_factories[AdPlatform(platform)]
        except (KeyError, ValueError):
            raise ValueError(f"{platform} has no pull source; its rows are pushed to the ingest endpoint")
        return factory()

    async def run(self, platform: AdPlatform, start: DateLike, end: DateLike) -> IngestionResult:
        return await self.runner.run(self.get_source(platform), start, end)

    async def run_daily_ingest(self, platform: AdPlatform) -> Dict[str, Any]:
        """Ingest yesterday (UTC) for one platform"""
        yesterday = self.today() - timedelta(days=1)
        result = await self.run(platform, yesterday, yesterday)
        return {
            "ok": True,
            "inserted": result.total_rows_loaded,
            "failed_chunks": len(result.failed_chunks),
        }

    async def run_backfill(
        self,
        platform: AdPlatform,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None
    ) -> Dict[str, Any]:
        """
        Ingest a historical window in weekly chunks.

        `start` defaults to the oldest date the platform still reports on,
        `end` to today (UTC).
        """
        source = self.get_source(platform)
        today = self.today()
        start_date = to_date(start) if start else source.earliest_backfill_date(today)
        end_date = to_date(end) if end else today

        result = await self.runner.run(source, start_date, end_date)
        return {
            "ok": True,
            "total": result.total_rows_loaded,
            "failed_chunks": len(result.failed_chunks),
        }

    async def ingest_rows(self, platform: AdPlatform, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Map and load rows pushed by a platform-side script as one batch.

        Raises:
            LoadJobError, CredentialExchangeError: Propagated to the caller
        """
        platform = AdPlatform(platform)
        records = get_mapper(platform).map_rows(rows)
        loaded = await self.loader.load(PLATFORM_TABLES[platform], records)
        logger.info(f"Ingested {loaded} pushed {platform.value} rows")
        return {"ok": True, "inserted": loaded}


@lru_cache(maxsize=1)
def get_ingestion_service() -> IngestionService:
    """Process-wide service (and therefore process-wide token cache)"""
    return IngestionService.from_settings(default_settings)
