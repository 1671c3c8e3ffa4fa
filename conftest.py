"""
Shared fixtures: a fake HTTP client and canned feed / HTML documents.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Union

import pytest

from core.interfaces import SourceAdapter
from core.models import EventRecord


class FakeHttp:
    """Stands in for core.infra.http.HttpClient. Routes url → payload or exception."""

    def __init__(self, routes: Optional[Dict[str, Union[bytes, str, BaseException]]] = None):
        self.routes = dict(routes or {})
        self.calls: List[str] = []
        self.headers: List[dict] = []
        self.closed = False

    async def _get(self, url: str, headers=None):
        self.calls.append(url)
        self.headers.append(dict(headers or {}))
        if url not in self.routes:
            raise KeyError(f"no route for {url}")
        value = self.routes[url]
        if isinstance(value, BaseException):
            raise value
        return value

    async def get_bytes(self, url: str, headers=None) -> bytes:
        value = await self._get(url, headers)
        return value.encode("utf-8") if isinstance(value, str) else value

    async def get_text(self, url: str, headers=None) -> str:
        value = await self._get(url, headers)
        return value.decode("utf-8") if isinstance(value, bytes) else value

    async def close(self) -> None:
        self.closed = True


class StubAdapter(SourceAdapter):
    """Adapter returning fixed records and counting invocations."""

    def __init__(self, name: str, records=(), error: Optional[BaseException] = None, **kwargs):
        super().__init__(**kwargs)
        self._name = name
        self.records = list(records)
        self.error = error
        self.calls = 0

    @property
    def name(self) -> str:
        return self._name

    async def _fetch(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.records)


BASE_TIME = datetime(2025, 10, 1, 9, 0, tzinfo=timezone.utc)


def make_record(n: int, *, source: str = "stub", hours: float = 0, title: Optional[str] = None) -> EventRecord:
    return EventRecord(
        id=f"{source}-{n}",
        title=title or f"Announcement {n}",
        url=f"https://example.com/{source}/{n}",
        publish_date=BASE_TIME + timedelta(hours=hours),
        source=source,
    )


RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>Example Tech</title>
    <link>https://tech.example.com/</link>
    <description>Example feed</description>
    <item>
      <title>Summer Festival campaign starts</title>
      <link>https://tech.example.com/articles/1</link>
      <guid>tech-1</guid>
      <pubDate>Wed, 01 Oct 2025 10:00:00 +0900</pubDate>
      <description><![CDATA[<p>Join the <b>festival</b> this weekend.</p>]]></description>
      <enclosure url="https://tech.example.com/img/1.jpg" type="image/jpeg" length="100"/>
    </item>
    <item>
      <title>Quarterly financial report</title>
      <link>https://tech.example.com/articles/2</link>
      <pubDate>Thu, 02 Oct 2025 08:00:00 +0000</pubDate>
      <description>Revenue grew.</description>
      <media:thumbnail url="https://tech.example.com/img/2.jpg"/>
    </item>
    <item>
      <title>New store opening downtown</title>
      <link>https://tech.example.com/articles/3</link>
      <description><![CDATA[<img src="https://tech.example.com/img/3.jpg"/> Grand opening.]]></description>
    </item>
    <item>
      <link>https://tech.example.com/articles/4</link>
      <description>Entry without a title</description>
    </item>
  </channel>
</rss>
"""

RDF_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rdf:RDF xmlns="http://purl.org/rss/1.0/"
         xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#"
         xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel rdf:about="https://press.example.jp/">
    <title>Press</title>
    <link>https://press.example.jp/</link>
    <description>Press releases</description>
  </channel>
  <item rdf:about="https://press.example.jp/main/html/rd/p/000000001.html">
    <title>限定イベントを開催</title>
    <link>https://press.example.jp/main/html/rd/p/000000001.html</link>
    <description>期間限定のポップアップストアがオープン</description>
    <dc:date>2025-10-03T12:00:00+09:00</dc:date>
  </item>
  <item rdf:about="https://press.example.jp/main/html/rd/p/000000002.html">
    <title>決算短信のお知らせ</title>
    <link>https://press.example.jp/main/html/rd/p/000000002.html</link>
    <description>第2四半期の決算について</description>
    <dc:date>2025-10-02T12:00:00+09:00</dc:date>
  </item>
  <item rdf:about="https://press.example.jp/main/html/rd/p/000000003.html">
    <title>新作モデルを発売</title>
    <link>https://press.example.jp/main/html/rd/p/000000003.html</link>
    <description>秋の新作</description>
    <dc:date>2025-10-01T12:00:00+09:00</dc:date>
  </item>
</rdf:RDF>
"""

LINK_PAGE = """<html><head><title>News</title></head><body>
<div id="main">
  <div class="entry">
    <span>2025.10.1</span> <span>[イベント]</span>
    <a href="/news/123">Opening of the new wing</a>
  </div>
  <div class="entry">
    <a href="/about">About us and our history</a>
  </div>
  <div class="entry">
    <a href="/news/124">Hi</a>
  </div>
</div>
</body></html>
"""

SELECTOR_PAGE = """<html><body>
<ul class="news-list">
  <li>
    <span class="date">2025.9.28</span>
    <span class="category">【お知らせ】</span>
    <a href="detail/10"><span class="title">Autumn workshop schedule</span></a>
    <p class="summary">Sign up at the front desk.</p>
  </li>
  <li>
    <span class="date">2025.10.5</span>
    <a href="https://other.example.jp/detail/11">Pop-up store arrives</a>
    <img src="/img/11.png"/>
  </li>
  <li>
    <span class="date">2025.10.2</span>
  </li>
</ul>
</body></html>
"""

TEXT_PAGE = """<html><body>
<script>var x = "2025.1.1";</script>
<div>
2025.10.3
[キャンペーン]
秋の大感謝セールを開催します
</div>
<div>
2025.9.30（火）
【お知らせ】
営業時間変更のお知らせについて
</div>
<div>
2025.9.1
Not a category line
2025.8.20
[展示]
夏の特別展示が始まりました
</div>
</body></html>
"""


@pytest.fixture
def fake_http():
    return FakeHttp()
