"""
Route dependencies: shared-secret checks and the ingestion service
"""

import secrets
from typing import Optional

from fastapi import Header, HTTPException, status

from core.config import settings
from ingestion.service import IngestionService, get_ingestion_service


def _matches(supplied: Optional[str], expected: str) -> bool:
    return supplied is not None and secrets.compare_digest(supplied.encode(), expected.encode())


async def verify_ingest_secret(x_ingest_secret: Optional[str] = Header(None)):
    """Backfill and push ingest require the x-ingest-secret header"""
    if not settings.INGEST_SECRET or not _matches(x_ingest_secret, settings.INGEST_SECRET):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


async def verify_cron_secret(authorization: Optional[str] = Header(None)):
    """
    Cron routes expect `Authorization: Bearer <CRON_SECRET>`.

    Skipped when CRON_SECRET is unset: some hosting plans trigger cron
    without sending it.
    """
    if not settings.CRON_SECRET:
        return
    if not _matches(authorization, f"Bearer {settings.CRON_SECRET}"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def get_service() -> IngestionService:
    return get_ingestion_service()
