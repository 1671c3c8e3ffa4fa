"""
Feed parsing – syndication document → EventRecords.
"""

from __future__ import annotations

import calendar
import logging
import re
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

import feedparser
from bs4 import BeautifulSoup
from dateutil import parser as dateparser

from core.errors import FeedParseError
from core.models import EventRecord


logger = logging.getLogger(__name__)

_IMG_SRC = re.compile(r"<img[^>]+src=[\"']([^\"'>]+)[\"']", re.I)


def parse_feed(payload: bytes | str) -> List[Mapping[str, Any]]:
    """Parse a feed document and return its entries.

    A document without entries that is malformed or not recognizable as a feed
    is a parse failure. Malformed documents that still yielded entries are
    accepted; a well-formed feed with no items is simply empty.
    """
    doc = feedparser.parse(payload)
    if not doc.entries and (doc.bozo or not doc.get("version")):
        reason = doc.get("bozo_exception") or "not a syndication feed"
        raise FeedParseError(f"unparseable feed: {reason}")
    if doc.bozo:
        logger.debug(f"Feed parsed with warnings: {doc.get('bozo_exception')}")
    return list(doc.entries)


def _html_to_text(value: Optional[str]) -> str:
    if not value:
        return ""
    if "<" not in value:
        return value.strip()
    return BeautifulSoup(value, "html.parser").get_text(" ", strip=True)


def entry_date(entry: Mapping[str, Any], fallback: datetime) -> datetime:
    """Publish time of an entry; ``fallback`` when nothing parses."""
    for key in ("published_parsed", "updated_parsed"):
        struct = entry.get(key)
        if struct:
            try:
                return datetime.fromtimestamp(calendar.timegm(struct), tz=timezone.utc)
            except (OverflowError, ValueError, TypeError):
                continue

    for key in ("published", "updated", "dc_date"):
        raw = entry.get(key)
        if not raw:
            continue
        try:
            dt = dateparser.parse(raw)
        except (ValueError, OverflowError):
            continue
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt

    return fallback


def entry_content(entry: Mapping[str, Any]) -> str:
    """Raw (HTML) body of an entry."""
    for block in entry.get("content") or []:
        value = block.get("value")
        if value:
            return value
    return entry.get("summary") or entry.get("description") or ""


def entry_image(entry: Mapping[str, Any]) -> Optional[str]:
    """Best image URL for an entry: enclosure, thumbnail, media content, inline img."""
    for enc in entry.get("enclosures") or []:
        href = enc.get("href") or enc.get("url")
        if href:
            return href

    for key in ("media_thumbnail", "media_content"):
        for media in entry.get(key) or []:
            url = media.get("url")
            if url:
                return url

    match = _IMG_SRC.search(entry_content(entry))
    if match:
        return match.group(1)
    return None


def entry_to_record(
    entry: Mapping[str, Any],
    *,
    source: str,
    category: str,
    fetched_at: datetime,
    fallback_url: str,
) -> Optional[EventRecord]:
    """Map one feed entry, or ``None`` if it has no title.

    Entries without a link point at ``fallback_url`` (the feed itself).
    """
    title = _html_to_text(entry.get("title"))
    if not title:
        return None
    link = (entry.get("link") or "").strip()
    guid = (entry.get("id") or entry.get("guid") or "").strip()
    if not link:
        link = fallback_url
        guid = guid or f"{fallback_url}#{title}"

    summary = entry.get("summary") or entry.get("description")
    description = _html_to_text(summary or entry_content(entry))

    return EventRecord(
        id=guid or link,
        title=title,
        description=description,
        url=link,
        publish_date=entry_date(entry, fetched_at),
        source=source,
        category=category,
        image_url=entry_image(entry),
    )
