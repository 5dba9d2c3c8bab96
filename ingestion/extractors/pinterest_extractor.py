"""
Pinterest Ads analytics source.

The ad group analytics endpoint needs explicit ad group IDs, so a source
instance first refreshes its OAuth token and enumerates every ad group in
the account (archived included, for historical ranges). Both are resolved
once per instance and reused across chunks.

Analytics only reach back about 90 days.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import httpx

from core.exceptions import AuthenticationError
from core.http import open_client
from ingestion.base import AdSource
from models.base import AdPlatform
from models.date_range import DateRange

logger = logging.getLogger(__name__)

PINTEREST_API_URL = "https://api.pinterest.com/v5"

ANALYTICS_COLUMNS = [
    "AD_GROUP_NAME",
    "CAMPAIGN_NAME",
    "SPEND_IN_MICRO_DOLLAR",
    "CLICKTHROUGH_1",
    "IMPRESSION_1",
    "TOTAL_CHECKOUT",
]

LOOKBACK_DAYS = 89
AD_GROUP_PAGE_SIZE = 250
MAX_IDS_PER_REQUEST = 100


class PinterestAdsSource(AdSource):
    """Ad group daily analytics from the Pinterest v5 API"""

    platform = AdPlatform.PINTEREST

    def __init__(
        self,
        ad_account_id: str,
        app_id: str,
        app_secret: str,
        refresh_token: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0
    ):
        super().__init__(client=client, timeout=timeout)
        self.ad_account_id = ad_account_id
        self.app_id = app_id
        self.app_secret = app_secret
        self.refresh_token = refresh_token
        self._access_token: Optional[str] = None
        self._ad_group_ids: Optional[List[str]] = None

    @classmethod
    def from_settings(cls, settings, client: Optional[httpx.AsyncClient] = None) -> "PinterestAdsSource":
        settings.require(
            "PINTEREST_AD_ACCOUNT_ID",
            "PINTEREST_APP_ID",
            "PINTEREST_APP_SECRET",
            "PINTEREST_REFRESH_TOKEN",
        )
        return cls(
            ad_account_id=settings.PINTEREST_AD_ACCOUNT_ID,
            app_id=settings.PINTEREST_APP_ID,
            app_secret=settings.PINTEREST_APP_SECRET,
            refresh_token=settings.PINTEREST_REFRESH_TOKEN,
            client=client,
            timeout=settings.HTTP_TIMEOUT,
        )

    @property
    def account_url(self) -> str:
        return f"{PINTEREST_API_URL}/ad_accounts/{self.ad_account_id}"

    def earliest_backfill_date(self, today: date) -> date:
        return today - timedelta(days=LOOKBACK_DAYS)

    async def fetch(self, chunk: DateRange) -> List[Dict[str, Any]]:
        async with open_client(self.client, self.timeout) as client:
            token = await self._get_access_token(client)
            ad_group_ids = await self._list_ad_group_ids(client, token)

            if not ad_group_ids:
                logger.info(f"No Pinterest ad groups in account {self.ad_account_id}")
                return []

            rows: List[Dict[str, Any]] = []
            for i in range(0, len(ad_group_ids), MAX_IDS_PER_REQUEST):
                batch = ad_group_ids[i:i + MAX_IDS_PER_REQUEST]
                payload = await self._request_json(
                    client,
                    "GET",
                    f"{self.account_url}/ad_groups/analytics",
                    params={
                        "start_date": chunk.start.isoformat(),
                        "end_date": chunk.end.isoformat(),
                        "ad_group_ids": ",".join(batch),
                        "columns": ",".join(ANALYTICS_COLUMNS),
                        "granularity": "DAY",
                    },
                    headers=self._auth_headers(token),
                )
                # This endpoint answers with a bare array, not {"items": [...]}
                rows.extend(self.unwrap_rows(payload))

        return rows

    async def _get_access_token(self, client: httpx.AsyncClient) -> str:
        if self._access_token:
            return self._access_token

        payload = await self._request_json(
            client,
            "POST",
            f"{PINTEREST_API_URL}/oauth/token",
            data={"grant_type": "refresh_token", "refresh_token": self.refresh_token},
            auth=(self.app_id, self.app_secret),
        )

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise AuthenticationError(
                "Pinterest token refresh returned no access token",
                context={"platform": self.name}
            )

        self._access_token = token
        return token

    async def _list_ad_group_ids(self, client: httpx.AsyncClient, token: str) -> List[str]:
        if self._ad_group_ids is not None:
            return self._ad_group_ids

        ids: List[str] = []
        bookmark: Optional[str] = None

        while True:
            params = {
                "page_size": AD_GROUP_PAGE_SIZE,
                "entity_statuses": "ACTIVE,PAUSED,ARCHIVED",
            }
            if bookmark:
                params["bookmark"] = bookmark

            payload = await self._request_json(
                client,
                "GET",
                f"{self.account_url}/ad_groups",
                params=params,
                headers=self._auth_headers(token),
            )
            ids.extend(str(group["id"]) for group in self.unwrap_rows(payload) if group.get("id"))

            bookmark = payload.get("bookmark") if isinstance(payload, dict) else None
            if not bookmark:
                break

        logger.info(f"Found {len(ids)} Pinterest ad groups")
        self._ad_group_ids = ids
        return ids

    @staticmethod
    def _auth_headers(token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"}
