"""
Core data models for the event aggregator.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class EventRecord(BaseModel):
    """Canonical normalized announcement produced by every source adapter."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    title: str
    description: str = ""
    url: str
    publish_date: datetime = Field(default_factory=utcnow)
    source: str
    category: str = ""
    image_url: Optional[str] = None
    is_event_related: bool = False

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be empty")
        return value

    @field_validator("publish_date")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        # naive instants are taken as UTC so mixed sources stay comparable
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class CacheEntry(BaseModel):
    """One cached dataset value. Replaced wholesale, never patched."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: str
    value: Any
    created_at: float


class FailureKind(str, Enum):
    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    PARSE = "parse"


class FailureReport(BaseModel):
    """Source failure, reported for monitoring only."""
    source: str
    kind: FailureKind
    message: str
    timestamp: datetime = Field(default_factory=utcnow)


class FacilityLink(BaseModel):
    """Static reference entry; no fetch behavior."""
    name: str
    link: str
    description: str = ""
