"""
In-memory TTL cache for aggregated datasets.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

from .models import CacheEntry


logger = logging.getLogger(__name__)


class TTLCache:
    """Key → value store with one fixed time-to-live.

    Expiry is lazy: an entry older than ``ttl`` seconds is treated as a miss
    and dropped on the next ``get``. ``purge_expired`` can be called to sweep.
    """

    def __init__(self, ttl: float = 3600.0, clock: Callable[[], float] = time.monotonic):
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.ttl = float(ttl)
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def _fresh(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at < self.ttl

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not self._fresh(entry, self._clock()):
            logger.debug(f"Cache entry expired: {key}")
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = CacheEntry(key=key, value=value, created_at=self._clock())

    def entry(self, key: str) -> Optional[CacheEntry]:
        """Return the raw entry for ``key`` if it is still fresh."""
        if self.get(key) is None:
            return None
        return self._entries.get(key)

    def purge_expired(self) -> int:
        now = self._clock()
        stale = [k for k, e in self._entries.items() if not self._fresh(e, now)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
