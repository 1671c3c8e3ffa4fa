"""
Main entry point for the event aggregator with scheduled cache warm-up.
"""

import asyncio
import json
import logging
import os
import sys
import signal
from dotenv import load_dotenv

# Add project root to PYTHONPATH so imports work when running this script directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.aggregator import Aggregator
from core.config import build_aggregator, load_config
from core.errors import ConfigError
from core.infra.scheduler import Scheduler
from core.plugin_loader import list_available


def setup_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s"
    )


def dump_events(events) -> list:
    """JSON-ready list of records using the public camelCase field names."""
    return [e.model_dump(mode="json", by_alias=True) for e in events]


async def main():
    """Build the aggregator and either run once or keep the cache warm."""
    load_dotenv()
    setup_logging()
    logger = logging.getLogger(__name__)

    config_file = os.getenv("SOURCES_CONFIG", "sources.yml")
    scheduler_mode = os.getenv("SCHEDULER_MODE", "enabled")

    available = list_available()
    logger.info(f"Discovered {len(available)} adapter classes:")
    for name, cls in available.items():
        logger.info(f"  - {name}: {cls.__name__}")

    try:
        config = load_config(config_file)
        aggregator = build_aggregator(config)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    for name, info in aggregator.describe()["datasets"].items():
        logger.info(f"  - {name}: {len(info['sources'])} sources, max {info['max_items']} items")

    async with aggregator:
        if scheduler_mode == "disabled":
            logger.info("Refreshing all datasets once...")
            await run_once(aggregator)
            return

        await run_with_scheduler(aggregator, config.warmup_interval)


async def run_once(aggregator: Aggregator) -> None:
    """Refresh every dataset and print the result as JSON."""
    payload = {}
    for name in aggregator.datasets:
        payload[name] = dump_events(await aggregator.get_events(name))
    payload["facilities"] = [f.model_dump() for f in aggregator.get_static_facility_links()]
    print(json.dumps(payload, ensure_ascii=False, indent=2))


async def run_with_scheduler(aggregator: Aggregator, interval: float) -> None:
    """Warm every dataset now and then every ``interval`` seconds until stopped."""
    logger = logging.getLogger(__name__)
    scheduler = Scheduler(timezone=os.getenv("SCHEDULER_TIMEZONE", "UTC"))

    # Setup graceful shutdown
    stop_event = asyncio.Event()

    def signal_handler():
        logger.info("Received shutdown signal")
        stop_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        asyncio.get_running_loop().add_signal_handler(sig, signal_handler)

    async def warm():
        counts = await aggregator.refresh_all()
        logger.info(f"Cache warmed: {counts}")

    try:
        await scheduler.start()
        scheduler.add_interval_job(warm, seconds=interval, job_id="warm_cache")
        await warm()
        await stop_event.wait()
    finally:
        logger.info("Shutting down...")
        await scheduler.stop()
        logger.info("Shutdown complete")


def run_aggregator():
    """Entry point that can be called from other scripts."""
    asyncio.run(main())


if __name__ == "__main__":
    run_aggregator()
