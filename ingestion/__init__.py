"""
Pipeline components for ad platform ingestion.

Modules:
    base: Abstract base class for ad platform sources
    chunking: Week-long partitioning of date windows
    runner: Chunked orchestrator with per-chunk failure isolation
    service: Daily ingest, backfill and push ingest entry points
    scheduler: APScheduler integration for the daily run

Subpackages:
    extractors: Meta and Pinterest API sources
    transformers: Per-platform record mappers
    loaders: BigQuery append-only load jobs

Architecture:
    Each chunk goes through three steps:

    1. Fetch - Pull the chunk's rows from the platform
    2. Map - Normalize rows to the destination table schema
    3. Load - Append the batch with a BigQuery load job

    A failed chunk is logged and skipped; the run continues.

Usage:
    from ingestion.service import get_ingestion_service

Example:
    service = get_ingestion_service()
    result = await service.run_backfill("meta", "2024-01-01", "2024-03-31")

    print(f"Loaded {result['total']} rows")
"""

__all__ = [
    "AdSource",
    "IngestionRunner",
    "IngestionService",
    "MetaInsightsSource",
    "PinterestAdsSource",
    "BigQueryLoader",
    "chunk",
]
