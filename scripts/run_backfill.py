"""
Run a daily ingest or a backfill from the command line.

    python scripts/run_backfill.py meta --from 2024-01-01 --to 2024-03-31
    python scripts/run_backfill.py pinterest --daily
"""

import argparse
import asyncio
import json
import sys
import os
import logging

# Add current directory to path to allow imports from core, ingestion, etc.
sys.path.append(os.getcwd())

from core.exceptions import ConfigurationError
from core.logging import setup_logging
from ingestion.service import get_ingestion_service
from models.base import AdPlatform
from models.date_range import to_date

logger = logging.getLogger(__name__)

PULL_PLATFORMS = [AdPlatform.META.value, AdPlatform.PINTEREST.value]


def date_arg(value: str):
    try:
        return to_date(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date {value!r}, expected YYYY-MM-DD")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Ingest ad platform metrics into BigQuery")
    parser.add_argument("platform", choices=PULL_PLATFORMS)
    parser.add_argument("--from", dest="start", type=date_arg, help="First day (YYYY-MM-DD), defaults per platform")
    parser.add_argument("--to", dest="end", type=date_arg, help="Last day (YYYY-MM-DD), defaults to today")
    parser.add_argument("--daily", action="store_true", help="Ingest yesterday only")
    return parser.parse_args(argv)


async def run(args) -> dict:
    service = get_ingestion_service()
    platform = AdPlatform(args.platform)

    if args.daily:
        return await service.run_daily_ingest(platform)
    return await service.run_backfill(platform, args.start, args.end)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging()

    try:
        result = asyncio.run(run(args))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.message}")
        return 1

    print(json.dumps(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
