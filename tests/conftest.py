"""
Pytest configuration and fixtures
"""

from datetime import date
from typing import Any, Callable, Dict, List, Union
from unittest.mock import AsyncMock

import httpx
import pytest

from core.exceptions import SourceFetchError
from ingestion.base import AdSource
from models.base import AdPlatform
from models.date_range import DateRange


class FakeSource(AdSource):
    """
    Source whose per-chunk results are scripted.

    Each entry in `responses` is either a list of raw rows or an exception
    to raise; entries are consumed one per fetch.
    """

    def __init__(
        self,
        responses: List[Union[List[Dict[str, Any]], Exception]],
        platform: AdPlatform = AdPlatform.META,
        backfill_start: date = date(2023, 1, 1)
    ):
        super().__init__()
        self.platform = platform
        self.responses = list(responses)
        self.backfill_start = backfill_start
        self.fetched: List[DateRange] = []

    def earliest_backfill_date(self, today: date) -> date:
        return self.backfill_start

    async def fetch(self, chunk: DateRange) -> List[Dict[str, Any]]:
        self.fetched.append(chunk)
        response = self.responses.pop(0) if self.responses else []
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_source_factory() -> Callable[..., FakeSource]:
    return FakeSource


@pytest.fixture
def fetch_error():
    return SourceFetchError("Meta returned HTTP 500", context={"platform": "meta", "status_code": 500})


@pytest.fixture
def recording_loader():
    """Loader double that accepts every batch and returns its size"""
    loader = AsyncMock()

    async def load(table_name, rows):
        return len(rows)

    loader.load = AsyncMock(side_effect=load)
    return loader


@pytest.fixture
def mock_client():
    """Factory for an AsyncClient whose requests are answered by a handler"""

    def make(handler: Callable[[httpx.Request], Any]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return make


@pytest.fixture
def meta_insight_row():
    """One adset-day as returned by the Graph API insights edge"""
    return {
        "date_start": "2024-01-15",
        "date_stop": "2024-01-15",
        "adset_name": "Prospecting - UK",
        "campaign_name": "Winter Sale",
        "reach": "1520",
        "frequency": "1.34",
        "spend": "42.17",
        "impressions": "2037",
        "inline_link_clicks": "61",
        "clicks": "88",
        "actions": [
            {"action_type": "link_click", "value": "61"},
            {"action_type": "purchase", "value": "3.7"},
            {"action_type": "add_to_cart", "value": "9"},
        ],
        "action_values": [
            {"action_type": "purchase", "value": "187.45"},
        ],
    }


@pytest.fixture
def pinterest_row():
    """One ad-group-day as returned by ad_groups/analytics"""
    return {
        "DATE": "2024-01-15",
        "AD_GROUP_ID": "2680067996745",
        "AD_GROUP_NAME": "Home decor - broad",
        "CAMPAIGN_NAME": "Spring refresh",
        "SPEND_IN_MICRO_DOLLAR": 2500000,
        "CLICKTHROUGH_1": 14,
        "IMPRESSION_1": 3120,
        "TOTAL_CHECKOUT": 2,
    }


@pytest.fixture
def google_ads_row():
    """One row as posted by the Google Ads Script"""
    return {
        "date": "2024-01-15",
        "campaign_name": "Brand - UK",
        "asset_group_name": "Exact",
        "clicks": 120,
        "impressions": 5400,
        "cost": 84.12,
        "conversions": 6.0,
        "conv_value": 412.5,
        "currency_code": "EUR",
    }
