#!/usr/bin/env python3
"""
Tests for FeedAdapter / IndexedFeedAdapter and feed entry mapping.
"""

import asyncio
from datetime import datetime, timezone

import aiohttp
import pytest

from adapters.feeds import FeedAdapter, IndexedFeedAdapter
from adapters.feeds.parser import entry_date, entry_image, parse_feed
from core.errors import FeedParseError
from core.models import FailureKind
from conftest import FakeHttp, RDF_FEED, RSS_FEED

FEED_URL = "https://tech.example.com/feed.xml"


def make_feed(http, **kwargs):
    kwargs.setdefault("url", FEED_URL)
    kwargs.setdefault("source_name", "TECH")
    return FeedAdapter(http=http, **kwargs)


@pytest.mark.asyncio
async def test_feed_entries_are_mapped():
    http = FakeHttp({FEED_URL: RSS_FEED})
    before = datetime.now(timezone.utc)
    records = await make_feed(http, category="tech").fetch()
    after = datetime.now(timezone.utc)

    # the entry without a title is dropped
    assert [r.title for r in records] == [
        "Summer Festival campaign starts",
        "Quarterly financial report",
        "New store opening downtown",
    ]
    first, second, third = records

    assert first.id == "tech-1"
    assert second.id == "https://tech.example.com/articles/2"
    assert first.url == "https://tech.example.com/articles/1"
    assert first.publish_date == datetime(2025, 10, 1, 1, 0, tzinfo=timezone.utc)
    assert second.publish_date == datetime(2025, 10, 2, 8, 0, tzinfo=timezone.utc)
    # undated entries fall back to fetch time
    assert before <= third.publish_date <= after

    assert "festival" in first.description
    assert "<" not in first.description
    assert all(r.source == "TECH" and r.category == "tech" for r in records)
    assert all(r.is_event_related is False for r in records)


@pytest.mark.asyncio
async def test_feed_image_sources():
    records = await make_feed(FakeHttp({FEED_URL: RSS_FEED})).fetch()

    assert [r.image_url for r in records] == [
        "https://tech.example.com/img/1.jpg",
        "https://tech.example.com/img/2.jpg",
        "https://tech.example.com/img/3.jpg",
    ]


@pytest.mark.asyncio
async def test_rdf_dc_date_is_used():
    url = "https://press.example.jp/index.rdf"
    adapter = FeedAdapter(url=url, source_name="PRESS", http=FakeHttp({url: RDF_FEED}))
    records = await adapter.fetch()

    assert len(records) == 3
    assert records[0].title == "限定イベントを開催"
    assert records[0].publish_date == datetime(2025, 10, 3, 3, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_event_only_keeps_event_entries():
    records = await make_feed(FakeHttp({FEED_URL: RSS_FEED}), event_only=True).fetch()

    assert [r.title for r in records] == [
        "Summer Festival campaign starts",
        "New store opening downtown",
    ]


@pytest.mark.asyncio
async def test_max_items_truncates():
    records = await make_feed(FakeHttp({FEED_URL: RSS_FEED}), max_items=2).fetch()
    assert len(records) == 2


@pytest.mark.asyncio
async def test_custom_headers_are_sent():
    http = FakeHttp({FEED_URL: RSS_FEED})
    await make_feed(http, headers={"User-Agent": "aggregator-test"}).fetch()
    assert http.headers == [{"User-Agent": "aggregator-test"}]


@pytest.mark.asyncio
@pytest.mark.parametrize("error, kind", [
    (asyncio.TimeoutError(), FailureKind.TIMEOUT),
    (aiohttp.ClientConnectionError("connection refused"), FailureKind.TRANSPORT),
    (b"this is not a feed", FailureKind.PARSE),
])
async def test_failures_degrade_to_empty_and_are_reported(error, kind):
    reports = []
    adapter = make_feed(FakeHttp({FEED_URL: error}), reporter=reports.append)

    assert await adapter.fetch() == []
    assert len(reports) == 1
    assert reports[0].kind is kind
    assert reports[0].source == "TECH"


@pytest.mark.asyncio
async def test_empty_but_valid_feed_is_not_a_failure():
    empty = '<?xml version="1.0"?><rss version="2.0"><channel><title>x</title></channel></rss>'
    reports = []
    adapter = make_feed(FakeHttp({FEED_URL: empty}), reporter=reports.append)

    assert await adapter.fetch() == []
    assert reports == []


@pytest.mark.asyncio
async def test_indexed_feed_isolates_failing_ids():
    template = "https://press.example.jp/companyrdf.php?company_id={id}"
    http = FakeHttp({
        template.format(id=1): aiohttp.ClientConnectionError("boom"),
        template.format(id=2): RSS_FEED,
    })
    reports = []
    adapter = IndexedFeedAdapter(
        name="PRESS", url_template=template, ids=[1, 2], http=http, reporter=reports.append,
    )

    records = await adapter.fetch()

    assert len(records) == 3
    assert all(r.source == "PRESS (id: 2)" for r in records)
    assert sorted(http.calls) == [template.format(id=1), template.format(id=2)]
    assert [(r.source, r.kind) for r in reports] == [("PRESS (id: 1)", FailureKind.TRANSPORT)]


@pytest.mark.asyncio
async def test_indexed_feed_custom_label_and_per_id_cap():
    template = "https://press.example.jp/{id}.rdf"
    http = FakeHttp({template.format(id="a"): RDF_FEED, template.format(id="b"): RDF_FEED})
    adapter = IndexedFeedAdapter(
        name="PRESS",
        url_template=template,
        ids=["a", "b"],
        source_name_template="Company {id}",
        max_items_per_id=1,
        http=http,
    )

    records = await adapter.fetch()

    # same article ids from both companies collapse to one per adapter output
    assert [r.source for r in records] == ["Company a"]


def test_indexed_feed_requires_id_placeholder():
    with pytest.raises(ValueError):
        IndexedFeedAdapter(name="X", url_template="https://x.example/feed", ids=[1], http=FakeHttp())


def test_parse_feed_rejects_garbage():
    with pytest.raises(FeedParseError):
        parse_feed(b"<html><body>Service unavailable</body></html>")


def test_entry_date_fallbacks():
    fallback = datetime(2020, 1, 1, tzinfo=timezone.utc)

    assert entry_date({}, fallback) is fallback
    assert entry_date({"published": "not a date"}, fallback) is fallback
    assert entry_date({"updated": "2025-10-01T12:00:00"}, fallback) == datetime(
        2025, 10, 1, 12, 0, tzinfo=timezone.utc
    )


def test_entry_image_none_when_absent():
    assert entry_image({"summary": "plain text"}) is None
