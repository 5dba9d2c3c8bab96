# ============================================================================
# File: ingestion/runner.py
# Description: Chunked ingestion orchestrator with per-chunk failure isolation
# ============================================================================
"""
Ingestion Runner - Orchestrates Fetch, Map, Load per chunk.

This module provides chunked ingestion with:
- Sequential processing of week-long chunks
- Partial failure support (a failed chunk never stops the run)
- Error context logged with each chunk's date range
- Accurate loaded-row accounting under partial failure
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional
import logging

from core.config import settings
from core.exceptions import IngestionError, LoadError, CredentialExchangeError
from ingestion.base import AdSource
from ingestion.chunking import DEFAULT_CHUNK_DAYS, chunk as chunk_range
from ingestion.loaders.bigquery_loader import BigQueryLoader
from models.base import ChunkStatus, RunStage
from models.date_range import DateLike, DateRange

logger = logging.getLogger(__name__)

FAILED_STATUSES = (ChunkStatus.FETCH_FAILED, ChunkStatus.MAP_FAILED, ChunkStatus.LOAD_FAILED)


@dataclass
class ChunkResult:
    """Outcome of one chunk"""
    chunk: DateRange
    status: ChunkStatus
    rows_fetched: int = 0
    rows_loaded: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.chunk.start.isoformat(),
            "end": self.chunk.end.isoformat(),
            "status": self.status.value,
            "rows_fetched": self.rows_fetched,
            "rows_loaded": self.rows_loaded,
            "error": self.error,
        }


@dataclass
class IngestionResult:
    """Outcome of a run; total_rows_loaded is reported even under partial failure"""
    platform: str
    chunks: List[ChunkResult] = field(default_factory=list)

    @property
    def total_rows_loaded(self) -> int:
        return sum(result.rows_loaded for result in self.chunks)

    @property
    def failed_chunks(self) -> List[ChunkResult]:
        return [
            result for result in self.chunks
            if result.status in FAILED_STATUSES
        ]

    @property
    def status(self) -> str:
        return "partial_success" if self.failed_chunks else "success"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform,
            "status": self.status,
            "total_rows_loaded": self.total_rows_loaded,
            "chunks": [result.to_dict() for result in self.chunks],
        }


class IngestionRunner:
    """
    Chunked ingestion orchestrator

    Responsibilities:
    - Split the window into chunks
    - Fetch -> Map -> Load each chunk strictly in order
    - Absorb fetch and load failures per chunk
    - Report total rows loaded
    """

    def __init__(self, loader: BigQueryLoader, chunk_days: Optional[int] = None):
        self.loader = loader
        chunk_days = chunk_days or settings.CHUNK_DAYS
        if not 1 <= chunk_days <= DEFAULT_CHUNK_DAYS:
            raise ValueError(f"Chunk size must be between 1 and {DEFAULT_CHUNK_DAYS} days, got {chunk_days}")
        self.chunk_days = chunk_days

    async def run(self, source: AdSource, start: DateLike, end: DateLike) -> IngestionResult:
        """
        Run ingestion for `source` over the inclusive window [start, end].

        Per chunk:
        1. Fetch - failure is logged, chunk marked fetch_failed, loop continues
        2. Empty - zero rows is a normal skip
        3. Map - failure is logged, chunk marked map_failed, loop continues
        4. Load - failure is logged, chunk marked load_failed, loop continues

        Failed chunks are not retried; re-run the window to recover them.

        Args:
            source: Platform source to fetch from
            start: First day (date or YYYY-MM-DD)
            end: Last day, inclusive

        Returns:
            IngestionResult with per-chunk outcomes and the loaded total
        """
        result = IngestionResult(platform=source.name)
        chunks = chunk_range(start, end, self.chunk_days)

        logger.info(
            f"Starting {source.name} ingestion for {chunks.start}..{chunks.end} "
            f"({len(chunks)} chunks, stage={RunStage.PENDING.value})"
        )

        for chunk in chunks:
            chunk_result = await self._run_chunk(source, chunk)
            result.chunks.append(chunk_result)

        logger.info(
            f"{source.name} ingestion {RunStage.COMPLETE.value}: {result.status} - "
            f"Loaded: {result.total_rows_loaded}, Failed chunks: {len(result.failed_chunks)}"
        )
        return result

    async def _run_chunk(self, source: AdSource, chunk: DateRange) -> ChunkResult:
        # --------------------------------------------------
        # FETCHING
        # --------------------------------------------------
        logger.debug(f"[{source.name} {chunk}] {RunStage.FETCHING.value}")
        try:
            raw_rows = await source.fetch(chunk)
        except IngestionError as e:
            logger.error(
                f"[{source.name} {chunk}] Fetch failed: {e.message}",
                extra={"error_context": e.to_dict()}
            )
            return ChunkResult(chunk, ChunkStatus.FETCH_FAILED, error=str(e))
        except Exception as e:
            logger.exception(f"[{source.name} {chunk}] Unexpected fetch error")
            return ChunkResult(chunk, ChunkStatus.FETCH_FAILED, error=f"{type(e).__name__}: {e}")

        if not raw_rows:
            logger.info(f"[{source.name} {chunk}] No rows, skipping")
            return ChunkResult(chunk, ChunkStatus.SKIPPED)

        # --------------------------------------------------
        # MAPPING
        # --------------------------------------------------
        logger.debug(f"[{source.name} {chunk}] {RunStage.MAPPING.value} {len(raw_rows)} rows")
        try:
            records = source.mapper.map_rows(raw_rows, chunk)
        except Exception as e:
            logger.exception(f"[{source.name} {chunk}] Mapping failed")
            return ChunkResult(
                chunk,
                ChunkStatus.MAP_FAILED,
                rows_fetched=len(raw_rows),
                error=f"{type(e).__name__}: {e}"
            )

        # --------------------------------------------------
        # LOADING
        # --------------------------------------------------
        logger.debug(f"[{source.name} {chunk}] {RunStage.LOADING.value} into {source.table_name}")
        try:
            loaded = await self.loader.load(source.table_name, records)
        except (LoadError, CredentialExchangeError) as e:
            logger.error(
                f"[{source.name} {chunk}] Load failed: {e.message}",
                extra={"error_context": e.to_dict()}
            )
            return ChunkResult(chunk, ChunkStatus.LOAD_FAILED, rows_fetched=len(raw_rows), error=str(e))
        except Exception as e:
            logger.exception(f"[{source.name} {chunk}] Unexpected load error")
            return ChunkResult(
                chunk,
                ChunkStatus.LOAD_FAILED,
                rows_fetched=len(raw_rows),
                error=f"{type(e).__name__}: {e}"
            )

        logger.info(f"[{source.name} {chunk}] Loaded {loaded} rows into {source.table_name}")
        return ChunkResult(chunk, ChunkStatus.LOADED, rows_fetched=len(raw_rows), rows_loaded=loaded)
