"""
Plain domain models shared across the pipeline.

Models:
    base: Shared enums (AdPlatform, ChunkStatus, RunStage) and the
        destination table for each platform
    date_range: Inclusive DateRange used for chunks and run windows

Usage:
    from models.base import AdPlatform, PLATFORM_TABLES
    from models.date_range import DateRange
"""

__all__ = [
    "AdPlatform",
    "ChunkStatus",
    "RunStage",
    "PLATFORM_TABLES",
    "DateRange",
]
