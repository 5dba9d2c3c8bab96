"""
Manually triggered backfill endpoints.

GET /api/backfill/meta?from=2023-01-01&to=2025-01-01
GET /api/backfill/pinterest?from=2024-10-01

The window is processed in weekly chunks; a failed chunk is logged and
skipped, and `total` counts only the rows that loaded.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
import logging

from api.dependencies import get_service, verify_ingest_secret
from ingestion.service import IngestionService
from models.base import AdPlatform
from schemas.api import BackfillResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/backfill", tags=["Backfill"], dependencies=[Depends(verify_ingest_secret)])


async def _backfill(
    request: Request,
    service: IngestionService,
    platform: AdPlatform,
    start: Optional[date],
    end: Optional[date]
) -> BackfillResponse:
    request_id = getattr(request.state, "request_id", "-")
    logger.info(f"[{request_id}] Backfill requested for {platform.value}: from={start} to={end}")
    result = await service.run_backfill(platform, start, end)
    return BackfillResponse(**result)


@router.get("/meta", response_model=BackfillResponse)
async def backfill_meta(
    request: Request,
    start: Optional[date] = Query(None, alias="from", description="First day, defaults to 2023-01-01"),
    end: Optional[date] = Query(None, alias="to", description="Last day, defaults to today"),
    service: IngestionService = Depends(get_service)
):
    return await _backfill(request, service, AdPlatform.META, start, end)


@router.get("/pinterest", response_model=BackfillResponse)
async def backfill_pinterest(
    request: Request,
    start: Optional[date] = Query(None, alias="from", description="First day, defaults to 89 days ago"),
    end: Optional[date] = Query(None, alias="to", description="Last day, defaults to today"),
    service: IngestionService = Depends(get_service)
):
    return await _backfill(request, service, AdPlatform.PINTEREST, start, end)
