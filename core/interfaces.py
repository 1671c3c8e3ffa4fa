"""
Core interfaces for the event aggregator.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Callable, Iterable, List, Optional, Set

import aiohttp
from bs4 import BeautifulSoup

from .errors import SourceError
from .models import EventRecord, FailureKind, FailureReport, utcnow


logger = logging.getLogger(__name__)

Reporter = Callable[[FailureReport], None]


def classify_failure(exc: BaseException) -> FailureKind:
    """Map a low-level exception onto the failure taxonomy."""
    if isinstance(exc, SourceError):
        return exc.kind
    if isinstance(exc, asyncio.TimeoutError):
        return FailureKind.TIMEOUT
    if isinstance(exc, aiohttp.ClientError):
        return FailureKind.TRANSPORT
    return FailureKind.PARSE


class SourceAdapter(ABC):
    """Abstract base class for event sources.

    Subclasses implement :meth:`_fetch`. The public :meth:`fetch` never
    raises: any failure is logged, reported and turned into an empty list.
    """

    def __init__(
        self,
        *,
        max_items: Optional[int] = None,
        reporter: Optional[Reporter] = None,
    ) -> None:
        self.max_items = max_items
        self.reporter = reporter

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this source."""

    @abstractmethod
    async def _fetch(self) -> List[EventRecord]:
        """Fetch and map records. May raise."""

    async def fetch(self) -> List[EventRecord]:
        try:
            records = await self._fetch()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.report(e)
            return []
        records = unique_by_id(records)
        if self.max_items is not None:
            records = records[: self.max_items]
        return records

    def report(self, exc: BaseException) -> None:
        """Log a failure and pass it to the reporter with its FailureKind."""
        kind = classify_failure(exc)
        message = str(exc) or type(exc).__name__
        logger.warning(f"Source {self.name} failed ({kind.value}): {message}")
        if self.reporter is not None:
            try:
                self.reporter(FailureReport(source=self.name, kind=kind, message=message))
            except Exception as e:  # noqa: BLE001
                logger.error(f"Failure reporter raised for {self.name}: {e}")

    def source_names(self) -> Set[str]:
        """Names this adapter's failure reports may carry."""
        return {self.name}

    def __repr__(self) -> str:  # pragma: no cover
        return f"<{type(self).__name__} {self.name}>"


def unique_by_id(records: Iterable[EventRecord]) -> List[EventRecord]:
    """Keep the first record for every id, preserving order."""
    seen = set()
    out: List[EventRecord] = []
    for record in records:
        if record.id in seen:
            continue
        seen.add(record.id)
        out.append(record)
    return out


@dataclass(frozen=True)
class PageContext:
    """What an extraction strategy knows about the page it is reading."""
    url: str
    source: str
    category: str = ""
    fetched_at: datetime = field(default_factory=utcnow)
    tz: Optional[tzinfo] = None


class ExtractionStrategy(ABC):
    """One way of pulling event records out of an HTML document."""

    name: str = "strategy"

    @abstractmethod
    def extract(self, soup: BeautifulSoup, page: PageContext) -> List[EventRecord]:
        """Return extracted records, or an empty list when nothing matches."""
