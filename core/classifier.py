"""
Keyword classifier deciding whether a text announces an event.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from .models import EventRecord


DEFAULT_KEYWORDS: Tuple[str, ...] = (
    # Japanese
    "イベント", "キャンペーン", "開催", "発売", "リリース",
    "オープン", "開業", "展示", "セール", "フェス", "フェア",
    "ワークショップ", "体験", "限定", "新作", "登場",
    # English
    "event", "campaign", "opening", "sale", "workshop", "exhibition",
    "festival", "fair", "limited edition", "limited-edition", "pop-up",
    "popup", "launch", "release",
)


class EventClassifier:
    """Case-insensitive substring match against a fixed keyword list."""

    def __init__(self, keywords: Optional[Iterable[str]] = None):
        source = DEFAULT_KEYWORDS if keywords is None else keywords
        self.keywords: Tuple[str, ...] = tuple(
            k.lower() for k in source if k and k.strip()
        )

    def is_event_related(self, text: Optional[str]) -> bool:
        if not text:
            return False
        lowered = str(text).lower()
        return any(k in lowered for k in self.keywords)

    def classify(self, record: EventRecord) -> EventRecord:
        """Return a copy of ``record`` with ``is_event_related`` set."""
        flag = self.is_event_related(f"{record.title} {record.description}")
        if flag == record.is_event_related:
            return record
        return record.model_copy(update={"is_event_related": flag})
