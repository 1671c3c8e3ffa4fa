"""
Scheduler infrastructure for periodic cache warm-up.
"""

import logging
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger


logger = logging.getLogger(__name__)


class Scheduler:
    """Async task scheduler wrapper around APScheduler (in-memory job store)."""

    def __init__(self, timezone: str = "UTC"):
        job_defaults = {
            'coalesce': True,
            'max_instances': 1,
            'misfire_grace_time': 60  # seconds
        }

        self._scheduler = AsyncIOScheduler(
            job_defaults=job_defaults,
            timezone=timezone
        )
        self._started = False

    async def start(self) -> None:
        """Start the scheduler. Must be called from inside the event loop."""
        if not self._started:
            self._scheduler.start()
            self._started = True
            logger.info("Scheduler started")

    async def stop(self) -> None:
        """Stop the scheduler."""
        if self._started:
            self._scheduler.shutdown(wait=False)
            self._started = False
            logger.info("Scheduler stopped")

    def add_interval_job(
        self,
        func: Callable,
        seconds: float,
        job_id: Optional[str] = None,
        **kwargs
    ) -> None:
        """Add a job that runs every ``seconds``."""
        if seconds <= 0:
            raise ValueError("Interval must be positive")

        self._scheduler.add_job(
            func,
            trigger=IntervalTrigger(seconds=seconds),
            id=job_id,
            replace_existing=True,
            **kwargs
        )

        logger.info(f"Added interval job: {job_id or func.__name__} (every {seconds}s)")
