"""
Daily cron endpoints: ingest yesterday's data for one platform
"""

from fastapi import APIRouter, Depends, Request
import logging

from api.dependencies import get_service, verify_cron_secret
from ingestion.service import IngestionService
from models.base import AdPlatform
from schemas.api import IngestResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/cron", tags=["Cron"], dependencies=[Depends(verify_cron_secret)])


async def _daily(request: Request, service: IngestionService, platform: AdPlatform) -> IngestResponse:
    request_id = getattr(request.state, "request_id", "-")
    logger.info(f"[{request_id}] Daily ingest requested for {platform.value}")
    result = await service.run_daily_ingest(platform)
    return IngestResponse(**result)


@router.get("/fetch-meta-ads", response_model=IngestResponse)
async def fetch_meta_ads(request: Request, service: IngestionService = Depends(get_service)):
    """Fetch yesterday's Meta insights and append them to raw_meta_ads"""
    return await _daily(request, service, AdPlatform.META)


@router.get("/fetch-pinterest-ads", response_model=IngestResponse)
async def fetch_pinterest_ads(request: Request, service: IngestionService = Depends(get_service)):
    """Fetch yesterday's Pinterest analytics and append them to raw_pinterest_ads"""
    return await _daily(request, service, AdPlatform.PINTEREST)
