"""
Aggregator for fanning out to sources and serving cached datasets.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .cache import TTLCache
from .classifier import EventClassifier
from .infra.http import HttpClient
from .interfaces import SourceAdapter
from .models import EventRecord, FacilityLink


logger = logging.getLogger(__name__)

DEFAULT_MAX_ITEMS = 100


@dataclass
class Dataset:
    """A named view composed from one or more sources."""
    name: str
    adapters: Sequence[SourceAdapter]
    max_items: int = DEFAULT_MAX_ITEMS
    description: str = ""
    sources: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.max_items <= 0:
            raise ValueError(f"Dataset {self.name}: max_items must be positive")
        if not self.sources:
            self.sources = [a.name for a in self.adapters]


class Aggregator:
    """Serves datasets from the cache, refreshing them from all sources on a miss."""

    def __init__(
        self,
        datasets: Mapping[str, Dataset],
        *,
        cache: Optional[TTLCache] = None,
        classifier: Optional[EventClassifier] = None,
        facilities: Sequence[FacilityLink] = (),
        http: Optional[HttpClient] = None,
        adapter_timeout: Optional[float] = 30.0,
    ) -> None:
        self.datasets: Dict[str, Dataset] = dict(datasets)
        self.cache = cache or TTLCache()
        self.classifier = classifier or EventClassifier()
        self.facilities = list(facilities)
        self.adapter_timeout = adapter_timeout
        self._http = http

    # ------------------------------------------------------------------ #
    async def __aenter__(self) -> "Aggregator":
        return self

    async def __aexit__(self, *_) -> None:
        await self.close()

    async def close(self) -> None:
        if self._http is not None:
            await self._http.close()

    # ------------------------------------------------------------------ #
    def dataset(self, key: str) -> Dataset:
        try:
            return self.datasets[key]
        except KeyError:
            raise KeyError(f"Unknown dataset '{key}'. Available: {sorted(self.datasets)}") from None

    async def get_events(self, key: str) -> List[EventRecord]:
        """Cached dataset, refreshed from every source on a miss."""
        dataset = self.dataset(key)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit: {key}")
            return list(cached)
        return await self._refresh(dataset)

    async def get_filtered_events(self, key: str) -> List[EventRecord]:
        """Event-related subset of the same cached dataset."""
        return [r for r in await self.get_events(key) if r.is_event_related]

    async def refresh(self, key: str) -> List[EventRecord]:
        """Fetch ``key`` from its sources regardless of the cache."""
        return await self._refresh(self.dataset(key))

    async def refresh_all(self) -> Dict[str, int]:
        counts = {}
        for key in self.datasets:
            counts[key] = len(await self.refresh(key))
        return counts

    def get_static_facility_links(self) -> List[FacilityLink]:
        return list(self.facilities)

    def describe(self) -> Dict[str, Any]:
        """Service status: datasets, their sources and cache settings."""
        return {
            "status": "ok",
            "cache_ttl": self.cache.ttl,
            "datasets": {
                name: {
                    "sources": list(ds.sources),
                    "max_items": ds.max_items,
                    "description": ds.description,
                    "cached": self.cache.get(name) is not None,
                }
                for name, ds in self.datasets.items()
            },
        }

    # ------------------------------------------------------------------ #
    async def _run_adapter(self, adapter: SourceAdapter) -> List[EventRecord]:
        try:
            if self.adapter_timeout is None:
                return await adapter.fetch()
            return await asyncio.wait_for(adapter.fetch(), timeout=self.adapter_timeout)
        except asyncio.TimeoutError:
            adapter.report(asyncio.TimeoutError(f"no result within {self.adapter_timeout}s"))
        except Exception as e:
            logger.error(f"Source {adapter.name} raised: {e}", exc_info=True)
        return []

    async def _refresh(self, dataset: Dataset) -> List[EventRecord]:
        started = time.monotonic()
        results = await asyncio.gather(*(self._run_adapter(a) for a in dataset.adapters))

        merged = [record for batch in results for record in batch]
        # stable: equal timestamps keep their input order
        merged.sort(key=lambda r: r.publish_date, reverse=True)
        events = [self.classifier.classify(r) for r in merged[: dataset.max_items]]

        self.cache.set(dataset.name, tuple(events))
        logger.info(
            f"Dataset {dataset.name}: {len(events)} events from "
            f"{sum(1 for b in results if b)}/{len(results)} sources "
            f"in {time.monotonic() - started:.2f}s"
        )
        return events
