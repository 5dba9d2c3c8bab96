"""
Pydantic schemas for destination table rows.

One model per BigQuery table. Every column has a default so a dumped row
always carries the full column set: numeric columns default to 0, optional
identifying names to None.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, Optional


class NormalizedRow(BaseModel):
    """Base for destination rows"""

    model_config = ConfigDict(extra="forbid")

    def to_record(self) -> Dict[str, Any]:
        """JSON-ready dict with keys exactly matching the table columns"""
        return self.model_dump(mode="json")


class MetaAdsRow(NormalizedRow):
    """Row of raw_meta_ads (adset-level daily insights)"""

    date: Optional[str] = None
    reporting_starts: Optional[str] = None
    reporting_ends: Optional[str] = None
    adset_name: Optional[str] = None
    campaign_name: Optional[str] = None
    results: int = 0
    result_indicator: Optional[str] = None
    reach: int = 0
    frequency: float = 0.0
    amount_spent: float = 0.0
    impressions: int = 0
    link_clicks: int = 0
    clicks_all: int = 0
    purchases: int = 0
    purchases_conversion_value: float = 0.0
    adds_to_cart: int = 0


class PinterestAdsRow(NormalizedRow):
    """Row of raw_pinterest_ads (ad-group-level daily analytics)"""

    date: Optional[str] = None
    campaign_name: str = ""
    ad_group_name: Optional[str] = None
    spend: float = Field(0.0, description="Account currency units, converted from micro-dollars")
    clicks: int = 0
    impressions: int = 0
    orders: int = 0
    revenue: float = 0.0


class GoogleAdsRow(NormalizedRow):
    """Row of raw_google_ads (ad-group-level daily metrics posted by the Ads Script)"""

    date: Optional[str] = None
    campaign_name: Optional[str] = None
    asset_group_name: Optional[str] = None
    clicks: int = 0
    impressions: int = 0
    currency_code: str = "GBP"
    cost: float = 0.0
    conversions: float = 0.0
    conv_value: float = 0.0
