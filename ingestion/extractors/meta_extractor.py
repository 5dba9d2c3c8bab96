"""
Meta Marketing API insights source.

Fetches adset-level insights, one row per adset per day, for a chunk's
date range. Follows Graph API cursor paging until exhausted.
"""

import json
import logging
from datetime import date
from typing import Any, Dict, List, Optional

import httpx

from core.http import open_client
from ingestion.base import AdSource
from models.base import AdPlatform
from models.date_range import DateRange

logger = logging.getLogger(__name__)

GRAPH_API_URL = "https://graph.facebook.com"

INSIGHT_FIELDS = [
    "date_start",
    "date_stop",
    "adset_name",
    "campaign_name",
    "results",
    "result_indicator",
    "reach",
    "frequency",
    "spend",
    "impressions",
    "inline_link_clicks",
    "clicks",
    "actions",
    "action_values",
]

BACKFILL_START = date(2023, 1, 1)


class MetaInsightsSource(AdSource):
    """Adset insights from the Meta Graph API"""

    platform = AdPlatform.META

    def __init__(
        self,
        ad_account_id: str,
        access_token: str,
        api_version: str = "v19.0",
        page_limit: int = 500,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0
    ):
        super().__init__(client=client, timeout=timeout)
        self.ad_account_id = ad_account_id if ad_account_id.startswith("act_") else f"act_{ad_account_id}"
        self.access_token = access_token
        self.api_version = api_version
        self.page_limit = page_limit

    @classmethod
    def from_settings(cls, settings, client: Optional[httpx.AsyncClient] = None) -> "MetaInsightsSource":
        settings.require("META_AD_ACCOUNT_ID", "META_ACCESS_TOKEN")
        return cls(
            ad_account_id=settings.META_AD_ACCOUNT_ID,
            access_token=settings.META_ACCESS_TOKEN,
            api_version=settings.META_API_VERSION,
            client=client,
            timeout=settings.HTTP_TIMEOUT,
        )

    @property
    def insights_url(self) -> str:
        return f"{GRAPH_API_URL}/{self.api_version}/{self.ad_account_id}/insights"

    def earliest_backfill_date(self, today: date) -> date:
        return BACKFILL_START

    async def fetch(self, chunk: DateRange) -> List[Dict[str, Any]]:
        params: Optional[Dict[str, Any]] = {
            "fields": ",".join(INSIGHT_FIELDS),
            "level": "adset",
            "time_range": json.dumps({"since": chunk.start.isoformat(), "until": chunk.end.isoformat()}),
            "time_increment": 1,
            "access_token": self.access_token,
            "limit": self.page_limit,
        }
        url: Optional[str] = self.insights_url
        rows: List[Dict[str, Any]] = []
        page = 0

        async with open_client(self.client, self.timeout) as client:
            while url:
                page += 1
                payload = await self._request_json(client, "GET", url, params=params)
                rows.extend(self.unwrap_rows(payload))

                # paging.next already carries every query parameter
                url = (payload.get("paging") or {}).get("next") if isinstance(payload, dict) else None
                params = None

        logger.debug(f"Fetched {len(rows)} Meta insight rows for {chunk} ({page} pages)")
        return rows
