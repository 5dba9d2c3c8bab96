"""
Map platform-native rows onto the destination table schemas.

Mappers never raise: absent or malformed numbers become 0, absent optional
names become None (or a field-specific default). Numeric parsing follows
what the platforms' JSON actually carries, which is often numbers encoded
as strings:

- counts take the leading integer of a string ("12.9" -> 12)
- rates and money take the leading float of a string
- NaN, infinities and anything unparseable become 0
"""

import logging
import math
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from models.base import AdPlatform
from models.date_range import DateRange
from schemas.normalized import GoogleAdsRow, MetaAdsRow, NormalizedRow, PinterestAdsRow

logger = logging.getLogger(__name__)

MICROS_PER_UNIT = 1_000_000

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


class RecordMapper(ABC):
    """
    Convert one platform's raw rows into normalized rows.

    Handles:
    - Field renaming
    - Numeric coercion with zero defaults
    - Unit conversion (micros to currency units)
    - Null-safe optional names
    """

    platform: AdPlatform

    @abstractmethod
    def map(self, raw_row: Dict[str, Any], chunk: Optional[DateRange] = None) -> NormalizedRow:
        """Map a single raw row. `chunk` is the date range the row was fetched for."""
        pass

    def map_rows(self, raw_rows: Iterable[Dict[str, Any]], chunk: Optional[DateRange] = None) -> List[Dict[str, Any]]:
        """Map raw rows into JSON-ready records for a load batch"""
        return [self.map(raw, chunk).to_record() for raw in raw_rows]

    @staticmethod
    def parse_int(value: Any) -> int:
        """Safely parse a count"""
        if value is None or isinstance(value, bool):
            return 0
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if math.isfinite(value) else 0
        if isinstance(value, str):
            match = _LEADING_INT.match(value)
            return int(match.group(1)) if match else 0
        return 0

    @staticmethod
    def parse_float(value: Any) -> float:
        """Safely parse a rate or money amount"""
        if value is None or isinstance(value, bool):
            return 0.0
        if isinstance(value, (int, float)):
            try:
                number = float(value)
            except OverflowError:
                return 0.0
        elif isinstance(value, str):
            match = _LEADING_FLOAT.match(value)
            if not match:
                return 0.0
            number = float(match.group(1))
        else:
            return 0.0
        return number if math.isfinite(number) else 0.0

    @staticmethod
    def parse_str(value: Any) -> Optional[str]:
        """Optional name: passed through, None when absent"""
        if value is None:
            return None
        return value if isinstance(value, str) else str(value)

    @staticmethod
    def round_half_up(value: float) -> int:
        """Round to the nearest integer, halves away from zero for positives (2.5 -> 3)"""
        return int(math.floor(value + 0.5))


class MetaInsightsMapper(RecordMapper):
    """Meta Marketing API adset insights -> raw_meta_ads"""

    platform = AdPlatform.META

    def map(self, raw_row: Dict[str, Any], chunk: Optional[DateRange] = None) -> MetaAdsRow:
        actions = raw_row.get("actions")
        action_values = raw_row.get("action_values")

        return MetaAdsRow(
            date=self.parse_str(raw_row.get("date_start")),
            reporting_starts=self.parse_str(raw_row.get("date_start")),
            reporting_ends=self.parse_str(raw_row.get("date_stop")),
            adset_name=self.parse_str(raw_row.get("adset_name")),
            campaign_name=self.parse_str(raw_row.get("campaign_name")),
            results=self.parse_int(raw_row.get("results")),
            result_indicator=self.parse_str(raw_row.get("result_indicator")),
            reach=self.parse_int(raw_row.get("reach")),
            frequency=self.parse_float(raw_row.get("frequency")),
            amount_spent=self.parse_float(raw_row.get("spend")),
            impressions=self.parse_int(raw_row.get("impressions")),
            link_clicks=self.parse_int(raw_row.get("inline_link_clicks")),
            clicks_all=self.parse_int(raw_row.get("clicks")),
            purchases=self.round_half_up(self.action_value(actions, "purchase")),
            purchases_conversion_value=self.action_value(action_values, "purchase"),
            adds_to_cart=self.round_half_up(self.action_value(actions, "add_to_cart")),
        )

    @classmethod
    def action_value(cls, actions: Any, action_type: str) -> float:
        """Value of the first entry with the given action_type; 0 when absent"""
        if not isinstance(actions, list):
            return 0.0
        for action in actions:
            if isinstance(action, dict) and action.get("action_type") == action_type:
                return cls.parse_float(action.get("value"))
        return 0.0


class PinterestAnalyticsMapper(RecordMapper):
    """Pinterest ad group analytics -> raw_pinterest_ads"""

    platform = AdPlatform.PINTEREST

    def map(self, raw_row: Dict[str, Any], chunk: Optional[DateRange] = None) -> PinterestAdsRow:
        row_date = self.parse_str(raw_row.get("DATE"))
        if row_date is None and chunk is not None:
            row_date = chunk.start.isoformat()

        return PinterestAdsRow(
            date=row_date,
            campaign_name=self.parse_str(raw_row.get("CAMPAIGN_NAME")) or "",
            ad_group_name=self.parse_str(raw_row.get("AD_GROUP_NAME")),
            spend=self.parse_float(raw_row.get("SPEND_IN_MICRO_DOLLAR")) / MICROS_PER_UNIT,
            clicks=self.parse_int(raw_row.get("CLICKTHROUGH_1")),
            impressions=self.parse_int(raw_row.get("IMPRESSION_1")),
            orders=self.parse_int(raw_row.get("TOTAL_CHECKOUT")),
            revenue=0.0,
        )


class GoogleAdsMapper(RecordMapper):
    """Rows posted by the Google Ads Script -> raw_google_ads"""

    platform = AdPlatform.GOOGLE_ADS

    def map(self, raw_row: Dict[str, Any], chunk: Optional[DateRange] = None) -> GoogleAdsRow:
        if raw_row.get("cost") is None and raw_row.get("cost_micros") is not None:
            cost = self.parse_float(raw_row.get("cost_micros")) / MICROS_PER_UNIT
        else:
            cost = self.parse_float(raw_row.get("cost"))

        currency_code = self.parse_str(raw_row.get("currency_code"))

        return GoogleAdsRow(
            date=self.parse_str(raw_row.get("date")),
            campaign_name=self.parse_str(raw_row.get("campaign_name")),
            asset_group_name=self.parse_str(raw_row.get("asset_group_name")),
            clicks=self.parse_int(raw_row.get("clicks")),
            impressions=self.parse_int(raw_row.get("impressions")),
            currency_code="GBP" if currency_code is None else currency_code,
            cost=cost,
            conversions=self.parse_float(raw_row.get("conversions")),
            conv_value=self.parse_float(raw_row.get("conv_value")),
        )


_MAPPERS = {
    AdPlatform.META: MetaInsightsMapper,
    AdPlatform.PINTEREST: PinterestAnalyticsMapper,
    AdPlatform.GOOGLE_ADS: GoogleAdsMapper,
}


def get_mapper(platform: AdPlatform) -> RecordMapper:
    """Return the mapper for a platform"""
    try:
        return _MAPPERS[AdPlatform(platform)]()
    except (KeyError, ValueError):
        raise ValueError(f"Unknown platform: {platform}")
