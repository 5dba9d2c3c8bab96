import enum


# ============================================================================
# ENUMS
# ============================================================================

class AdPlatform(str, enum.Enum):
    """Advertising platforms we ingest from"""
    META = "meta"
    PINTEREST = "pinterest"
    GOOGLE_ADS = "google_ads"


class ChunkStatus(str, enum.Enum):
    """Terminal state of one chunk within a run"""
    LOADED = "loaded"
    SKIPPED = "skipped"
    FETCH_FAILED = "fetch_failed"
    MAP_FAILED = "map_failed"
    LOAD_FAILED = "load_failed"


class RunStage(str, enum.Enum):
    """Where a run currently is; logged as the runner moves through a chunk"""
    PENDING = "pending"
    FETCHING = "fetching"
    MAPPING = "mapping"
    LOADING = "loading"
    COMPLETE = "complete"


# Destination table per platform
PLATFORM_TABLES = {
    AdPlatform.META: "raw_meta_ads",
    AdPlatform.PINTEREST: "raw_pinterest_ads",
    AdPlatform.GOOGLE_ADS: "raw_google_ads",
}
