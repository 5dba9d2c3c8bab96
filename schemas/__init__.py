"""
Pydantic schemas for data validation and serialization.

Schemas:
    normalized: Destination row models, one per BigQuery table
    api: HTTP request/response models

Usage:
    from schemas.normalized import MetaAdsRow, PinterestAdsRow, GoogleAdsRow
    from schemas.api import IngestResponse, BackfillResponse

Example:
    row = PinterestAdsRow(date="2024-01-15", campaign_name="Spring", spend=2.5)
    row.to_record()
    # {"date": "2024-01-15", "campaign_name": "Spring", "ad_group_name": None,
    #  "spend": 2.5, "clicks": 0, "impressions": 0, "orders": 0, "revenue": 0.0}
"""

__all__ = [
    "NormalizedRow",
    "MetaAdsRow",
    "PinterestAdsRow",
    "GoogleAdsRow",
    "IngestResponse",
    "BackfillResponse",
    "ErrorResponse",
    "GoogleAdsIngestRequest",
    "HealthCheckResponse",
]
