"""
Feed adapters – syndication feeds fetched over HTTP.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Mapping, Optional, Sequence, Set, Union

from core.classifier import EventClassifier
from core.infra.http import HttpClient
from core.interfaces import Reporter, SourceAdapter
from core.models import EventRecord, utcnow

from .parser import entry_to_record, parse_feed


logger = logging.getLogger(__name__)

__all__ = ["FeedAdapter", "IndexedFeedAdapter"]


class FeedAdapter(SourceAdapter):
    """Fetches one RSS/RDF/Atom feed and maps its entries."""

    def __init__(
        self,
        *,
        url: str,
        source_name: str,
        category: str = "",
        max_items: Optional[int] = None,
        event_only: bool = False,
        headers: Optional[Mapping[str, str]] = None,
        http: Optional[HttpClient] = None,
        classifier: Optional[EventClassifier] = None,
        reporter: Optional[Reporter] = None,
    ) -> None:
        super().__init__(max_items=max_items, reporter=reporter)
        self.url = url
        self.source_name = source_name
        self.category = category
        self.event_only = event_only
        self.headers: Dict[str, str] = dict(headers or {})
        self._http = http or HttpClient()
        self._classifier = classifier or EventClassifier()

    @property
    def name(self) -> str:
        return self.source_name

    async def _fetch(self) -> List[EventRecord]:
        fetched_at = utcnow()
        payload = await self._http.get_bytes(self.url, headers=self.headers)
        entries = parse_feed(payload)

        records: List[EventRecord] = []
        for entry in entries:
            record = entry_to_record(
                entry,
                source=self.source_name,
                category=self.category,
                fetched_at=fetched_at,
                fallback_url=self.url,
            )
            if record is None:
                continue
            if self.event_only and not self._classifier.is_event_related(
                f"{record.title} {record.description}"
            ):
                continue
            records.append(record)

        logger.info(f"{self.source_name}: {len(records)} of {len(entries)} entries kept")
        return records


class IndexedFeedAdapter(SourceAdapter):
    """Same feed shape fetched once per sub-identifier (e.g. company id).

    ``url_template`` and ``source_name_template`` are formatted with ``id`` and
    ``name``. A failing id contributes nothing; the others are unaffected.
    """

    def __init__(
        self,
        *,
        name: str,
        url_template: str,
        ids: Sequence[Union[str, int]],
        source_name_template: str = "{name} (id: {id})",
        category: str = "",
        max_items: Optional[int] = None,
        max_items_per_id: Optional[int] = None,
        event_only: bool = False,
        headers: Optional[Mapping[str, str]] = None,
        http: Optional[HttpClient] = None,
        classifier: Optional[EventClassifier] = None,
        reporter: Optional[Reporter] = None,
    ) -> None:
        super().__init__(max_items=max_items, reporter=reporter)
        if "{id}" not in url_template:
            raise ValueError(f"url_template for {name} has no {{id}} placeholder")
        self._name = name
        self.url_template = url_template
        self.ids = [str(i) for i in ids]
        self.source_name_template = source_name_template
        self.category = category
        self.max_items_per_id = max_items_per_id
        self.event_only = event_only
        self.headers: Dict[str, str] = dict(headers or {})
        self._http = http or HttpClient()
        self._classifier = classifier or EventClassifier()

    @property
    def name(self) -> str:
        return self._name

    def source_names(self) -> Set[str]:
        return {self._name} | {child.name for child in self.children()}

    def children(self) -> List[FeedAdapter]:
        return [
            FeedAdapter(
                url=self.url_template.format(id=sub_id, name=self._name),
                source_name=self.source_name_template.format(id=sub_id, name=self._name),
                category=self.category,
                max_items=self.max_items_per_id,
                event_only=self.event_only,
                headers=self.headers,
                http=self._http,
                classifier=self._classifier,
                reporter=self.reporter,
            )
            for sub_id in self.ids
        ]

    async def _fetch(self) -> List[EventRecord]:
        results = await asyncio.gather(*(child.fetch() for child in self.children()))
        records = [record for batch in results for record in batch]
        logger.info(f"{self._name}: {len(records)} records from {len(self.ids)} ids")
        return records
