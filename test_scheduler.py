#!/usr/bin/env python3
"""
Tests for the APScheduler warm-up wrapper.
"""

import asyncio

import pytest

from core.infra.scheduler import Scheduler


@pytest.mark.asyncio
async def test_interval_job_runs_until_stopped():
    scheduler = Scheduler()
    fired = asyncio.Event()

    async def warm():
        fired.set()

    await scheduler.start()
    try:
        scheduler.add_interval_job(warm, seconds=0.05, job_id="warm_cache")
        await asyncio.wait_for(fired.wait(), timeout=5)
    finally:
        await scheduler.stop()


@pytest.mark.parametrize("seconds", [0, -1])
def test_interval_must_be_positive(seconds):
    with pytest.raises(ValueError):
        Scheduler().add_interval_job(lambda: None, seconds=seconds)
