"""
Pydantic schemas for API request/response models
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone


class IngestResponse(BaseModel):
    """Daily ingest and push ingest result"""
    ok: bool = True
    inserted: int = 0
    failed_chunks: int = 0


class BackfillResponse(BaseModel):
    """Backfill result; total counts only the chunks that loaded"""
    ok: bool = True
    total: int = 0
    failed_chunks: int = 0


class ErrorResponse(BaseModel):
    error: str


class GoogleAdsIngestRequest(BaseModel):
    """Body posted by the Google Ads Script"""
    rows: Optional[List[Dict[str, Any]]] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "rows": [
                    {
                        "date": "2024-01-15",
                        "campaign_name": "Brand - UK",
                        "asset_group_name": "Exact",
                        "clicks": 120,
                        "impressions": 5400,
                        "cost": 84.12,
                        "conversions": 6.0,
                        "conv_value": 412.5,
                        "currency_code": "GBP"
                    }
                ]
            }
        }
    }


class TokenStatus(BaseModel):
    cached: bool
    expires_at: Optional[datetime] = None


class HealthCheckResponse(BaseModel):
    """Health check response model"""
    status: str = Field(..., description="Overall status: healthy or degraded")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    environment: str
    configured_platforms: List[str] = Field(default_factory=list)
    warehouse_configured: bool
    token: TokenStatus
