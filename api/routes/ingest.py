"""
Push ingest endpoint for the Google Ads Script
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import logging

from api.dependencies import get_service, verify_ingest_secret
from core.exceptions import CredentialExchangeError, LoadError
from ingestion.service import IngestionService
from models.base import AdPlatform
from schemas.api import GoogleAdsIngestRequest, IngestResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/ingest", tags=["Ingest"], dependencies=[Depends(verify_ingest_secret)])


@router.post("/google-ads", response_model=IngestResponse)
async def ingest_google_ads(
    request: Request,
    body: GoogleAdsIngestRequest,
    service: IngestionService = Depends(get_service)
):
    """
    Receive rows from the Google Ads Script and append them to raw_google_ads.

    One request is one load batch: it either loads completely or fails.
    """
    request_id = getattr(request.state, "request_id", "-")

    if not body.rows:
        return JSONResponse(status_code=400, content={"error": "No rows provided"})

    try:
        result = await service.ingest_rows(AdPlatform.GOOGLE_ADS, body.rows)
    except (LoadError, CredentialExchangeError) as e:
        logger.error(f"[{request_id}] Google Ads ingest failed: {e}", extra={"error_context": e.to_dict()})
        return JSONResponse(status_code=500, content={"error": e.message})

    logger.info(f"[{request_id}] Ingested {result['inserted']} Google Ads rows")
    return IngestResponse(**result)
