"""
Health check endpoint with configuration and token cache status
"""

from fastapi import APIRouter
from datetime import datetime, timezone
import logging

from core.config import settings
from core.exceptions import ConfigurationError
from ingestion.service import get_ingestion_service
from schemas.api import HealthCheckResponse, TokenStatus

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])

PLATFORM_SETTINGS = {
    "meta": ("META_AD_ACCOUNT_ID", "META_ACCESS_TOKEN"),
    "pinterest": (
        "PINTEREST_AD_ACCOUNT_ID",
        "PINTEREST_APP_ID",
        "PINTEREST_APP_SECRET",
        "PINTEREST_REFRESH_TOKEN",
    ),
    "google_ads": ("INGEST_SECRET",),
}


@router.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """
    Health check endpoint.

    Returns:
    - Which platforms have their settings in place
    - Whether the warehouse and identity federation are configured
    - Whether a BigQuery token is cached, and until when

    Never triggers a token exchange.
    """
    configured = [
        platform for platform, names in PLATFORM_SETTINGS.items()
        if all(getattr(settings, name) for name in names)
    ]

    token = TokenStatus(cached=False)
    warehouse_configured = False

    try:
        service = get_ingestion_service()
        warehouse_configured = True
        cached = service.broker.cached_token
        if cached is not None:
            token = TokenStatus(cached=True, expires_at=cached.expiry)
    except ConfigurationError as e:
        logger.warning(f"Health check: {e.message}")

    return HealthCheckResponse(
        status="healthy" if warehouse_configured and configured else "degraded",
        timestamp=datetime.now(timezone.utc),
        environment=settings.ENVIRONMENT,
        configured_platforms=configured,
        warehouse_configured=warehouse_configured,
        token=token,
    )
