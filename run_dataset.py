#!/usr/bin/env python3
"""
Simple script to fetch one dataset and print it as JSON.
"""

import asyncio
import json
import logging
import os
import sys

# Add project root to PYTHONPATH
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.config import build_from_file
from core.errors import ConfigError
from main import dump_events


async def run_specific_dataset(config_file: str, dataset: str, filtered: bool = False):
    """Fetch a dataset by name and print it."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s"
    )
    logger = logging.getLogger(__name__)

    try:
        aggregator = build_from_file(config_file)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    async with aggregator:
        if dataset not in aggregator.datasets:
            logger.error(f"Dataset '{dataset}' not found in {config_file}")
            logger.error(f"Available datasets: {sorted(aggregator.datasets)}")
            return 1

        if filtered:
            events = await aggregator.get_filtered_events(dataset)
        else:
            events = await aggregator.get_events(dataset)

    print(json.dumps(dump_events(events), ensure_ascii=False, indent=2))
    logger.info(f"{len(events)} events")
    return 0


if __name__ == "__main__":
    args = [a for a in sys.argv[1:] if a != "--filtered"]
    if len(args) != 2:
        print("Usage: python run_dataset.py <config_file> <dataset> [--filtered]")
        print("Example: python run_dataset.py sources.yml all --filtered")
        sys.exit(1)

    sys.exit(asyncio.run(run_specific_dataset(args[0], args[1], "--filtered" in sys.argv)))
