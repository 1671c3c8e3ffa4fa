"""
Scrape adapter – HTML pages without a feed.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from bs4 import BeautifulSoup
from dateutil import tz as dateutil_tz

from core.infra.http import HttpClient
from core.interfaces import ExtractionStrategy, PageContext, Reporter, SourceAdapter
from core.models import EventRecord, utcnow

from .strategies import build_strategy, default_chain, run_chain


logger = logging.getLogger(__name__)

__all__ = ["ScrapeAdapter"]


class ScrapeAdapter(SourceAdapter):
    """Fetches one HTML page and extracts records with a fallback chain.

    ``strategies`` accepts strategy instances or config mappings such as
    ``{"type": "link_pattern", "pattern": "/news/\\d+"}``; the default chain is
    selector list → link pattern → text block.
    """

    def __init__(
        self,
        *,
        url: str,
        source_name: str,
        strategies: Optional[Sequence[Any]] = None,
        category: str = "",
        max_items: Optional[int] = 30,
        timezone: str = "Asia/Tokyo",
        headers: Optional[Mapping[str, str]] = None,
        http: Optional[HttpClient] = None,
        reporter: Optional[Reporter] = None,
    ) -> None:
        super().__init__(max_items=max_items, reporter=reporter)
        self.url = url
        self.source_name = source_name
        self.category = category
        self.strategies: List[ExtractionStrategy] = (
            [build_strategy(s) for s in strategies] if strategies else default_chain()
        )
        self.tz = dateutil_tz.gettz(timezone)
        if self.tz is None:
            raise ValueError(f"Unknown timezone for {source_name}: {timezone}")
        self.headers: Dict[str, str] = dict(headers or {})
        self._http = http or HttpClient()

    @property
    def name(self) -> str:
        return self.source_name

    async def _fetch(self) -> List[EventRecord]:
        page = PageContext(
            url=self.url,
            source=self.source_name,
            category=self.category,
            fetched_at=utcnow(),
            tz=self.tz,
        )
        html = await self._http.get_text(self.url, headers=self.headers)
        soup = BeautifulSoup(html, "html.parser")

        records = run_chain(self.strategies, soup, page)
        if not records:
            logger.info(f"{self.source_name}: no extraction strategy matched {self.url}")
            return []

        records.sort(key=lambda r: r.publish_date, reverse=True)
        logger.info(f"{self.source_name}: extracted {len(records)} records")
        return records
