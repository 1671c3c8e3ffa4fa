"""
Extraction strategies for pages without a feed.

Each strategy turns a parsed document into EventRecords and returns an empty
list when its shape is not found. :func:`run_chain` tries them in order and
keeps the first non-empty result.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Type
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag
from bs4.element import PreformattedString
from dateutil import parser as dateparser

from core.interfaces import ExtractionStrategy, PageContext
from core.models import EventRecord


logger = logging.getLogger(__name__)

__all__ = [
    "SelectorListStrategy",
    "LinkPatternStrategy",
    "TextBlockStrategy",
    "build_strategy",
    "default_chain",
    "run_chain",
    "parse_dotted_date",
    "find_category",
]


# --------------------------------------------------------------------------- #
# Text helpers
# --------------------------------------------------------------------------- #
_DATE_TOKEN = r"(?<!\d)(\d{4})[./](\d{1,2})[./](\d{1,2})(?!\d)"
DATE_RE = re.compile(_DATE_TOKEN)
DATE_LINE_RE = re.compile(r"^\s*" + _DATE_TOKEN + r"\s*(?:[(（][^)）]{1,4}[)）])?\s*$")

_OPEN = r"\[【［"
_CLOSE = r"\]】］"
CATEGORY_RE = re.compile(rf"[{_OPEN}]\s*([^{_CLOSE}\n]{{1,40}}?)\s*[{_CLOSE}]")
CATEGORY_LINE_RE = re.compile(rf"^\s*[{_OPEN}]\s*([^{_CLOSE}\n]{{1,40}}?)\s*[{_CLOSE}]\s*$")

_SKIP_TEXT_PARENTS = {"script", "style", "noscript", "template", "head", "title"}


def parse_dotted_date(text: Optional[str], tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """First ``YYYY.M.D`` (or ``YYYY/M/D``) token in ``text`` as local midnight."""
    if not text:
        return None
    match = DATE_RE.search(text)
    if not match:
        return None
    year, month, day = (int(g) for g in match.groups())
    try:
        return datetime(year, month, day, tzinfo=tz or timezone.utc)
    except ValueError:
        return None


def find_category(text: Optional[str]) -> str:
    """First bracketed tag in ``text`` (``[..]``, ``【..】`` or ``［..］``)."""
    if not text:
        return ""
    match = CATEGORY_RE.search(text)
    return match.group(1).strip() if match else ""


def _clean(text: Optional[str]) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def _record(
    page: PageContext,
    *,
    index: int,
    title: str,
    url: Optional[str],
    published: Optional[datetime],
    category: str = "",
    description: str = "",
    image_url: Optional[str] = None,
) -> EventRecord:
    absolute = urljoin(page.url, url) if url else page.url
    return EventRecord(
        id=absolute if absolute != page.url else f"{page.url}#{index}",
        title=title,
        description=description,
        url=absolute,
        publish_date=published or page.fetched_at,
        source=page.source,
        category=category or page.category,
        image_url=urljoin(page.url, image_url) if image_url else None,
    )


# --------------------------------------------------------------------------- #
# 1. Known selectors
# --------------------------------------------------------------------------- #
class SelectorListStrategy(ExtractionStrategy):
    """Item containers found by the first matching CSS selector."""

    name = "selector_list"

    ITEM_SELECTORS = (
        "article.news-item",
        "li.news-item",
        ".news-list > li",
        ".news-list__item",
        ".topics-list > li",
    )
    TITLE_SELECTORS = (".news-title", ".title", "h2", "h3", "a")
    LINK_SELECTORS = ("a[href]",)
    DATE_SELECTORS = ("time", ".news-date", ".date")
    CATEGORY_SELECTORS = (".category", ".news-category", ".tag", ".label")
    DESCRIPTION_SELECTORS = (".summary", ".excerpt", "p")

    def __init__(
        self,
        *,
        item_selectors: Optional[Sequence[str]] = None,
        title_selectors: Optional[Sequence[str]] = None,
        link_selectors: Optional[Sequence[str]] = None,
        date_selectors: Optional[Sequence[str]] = None,
        category_selectors: Optional[Sequence[str]] = None,
        description_selectors: Optional[Sequence[str]] = None,
    ) -> None:
        self.item_selectors = tuple(item_selectors or self.ITEM_SELECTORS)
        self.title_selectors = tuple(title_selectors or self.TITLE_SELECTORS)
        self.link_selectors = tuple(link_selectors or self.LINK_SELECTORS)
        self.date_selectors = tuple(date_selectors or self.DATE_SELECTORS)
        self.category_selectors = tuple(category_selectors or self.CATEGORY_SELECTORS)
        self.description_selectors = tuple(description_selectors or self.DESCRIPTION_SELECTORS)

    @staticmethod
    def _first(node: Tag, selectors: Iterable[str]) -> Optional[Tag]:
        for selector in selectors:
            found = node.select_one(selector)
            if found is not None:
                return found
        return None

    def _containers(self, soup: BeautifulSoup) -> List[Tag]:
        for selector in self.item_selectors:
            found = soup.select(selector)
            if found:
                logger.debug(f"Selector matched {len(found)} items: {selector}")
                return found
        return []

    def _date(self, item: Tag, page: PageContext) -> Optional[datetime]:
        el = self._first(item, self.date_selectors)
        if el is not None:
            parsed = parse_dotted_date(el.get_text(" ", strip=True), page.tz)
            if parsed:
                return parsed
            attr = el.get("datetime")
            if attr:
                try:
                    dt = dateparser.isoparse(attr)
                except ValueError:
                    dt = None
                if dt is not None:
                    return dt if dt.tzinfo else dt.replace(tzinfo=page.tz or timezone.utc)
        return parse_dotted_date(item.get_text(" ", strip=True), page.tz)

    def extract(self, soup: BeautifulSoup, page: PageContext) -> List[EventRecord]:
        out: List[EventRecord] = []
        for index, item in enumerate(self._containers(soup), start=1):
            link = item if item.name == "a" and item.get("href") else self._first(item, self.link_selectors)
            title_el = self._first(item, self.title_selectors)
            if title_el is None:
                title_el = link
            title = _clean(title_el.get_text(" ")) if title_el is not None else ""
            if not title:
                continue

            cat_el = self._first(item, self.category_selectors)
            category = (
                find_category(cat_el.get_text()) or _clean(cat_el.get_text())
                if cat_el is not None
                else find_category(item.get_text(" "))
            )
            desc_el = self._first(item, self.description_selectors)
            description = _clean(desc_el.get_text(" ")) if desc_el is not None else ""
            if description == title:
                description = ""
            img = item.find("img", src=True)

            out.append(
                _record(
                    page,
                    index=index,
                    title=title,
                    url=link.get("href") if link is not None else None,
                    published=self._date(item, page),
                    category=category,
                    description=description,
                    image_url=img["src"] if img is not None else None,
                )
            )
        return out


# --------------------------------------------------------------------------- #
# 2. Detail-page links
# --------------------------------------------------------------------------- #
class LinkPatternStrategy(ExtractionStrategy):
    """Anchors whose path looks like a detail page, dated from nearby text.

    An anchor's context is its nearest dated ancestor block (up to
    ``max_depth``) that holds no link to a different detail page. When no such
    block carries a date, the nearest date and ``[tag]`` preceding the anchor
    are used, searching back no further than the previous detail link.
    """

    name = "link_pattern"

    def __init__(
        self,
        *,
        pattern: str = r"/news/\d+",
        min_title_length: int = 5,
        max_depth: int = 4,
        lookback: int = 8,
    ) -> None:
        self.pattern = re.compile(pattern)
        self.min_title_length = min_title_length
        self.max_depth = max_depth
        self.lookback = lookback

    @staticmethod
    def _is_other_link(tag: Optional[Tag], own: str, links: Dict[int, str]) -> bool:
        if tag is None:
            return False
        url = links.get(id(tag))
        return url is not None and url != own

    def _block_text(self, anchor: Tag, links: Dict[int, str]) -> str:
        own = links[id(anchor)]
        node = anchor
        text = anchor.get_text(" ", strip=True)
        for _ in range(self.max_depth):
            parent = node.parent
            if parent is None or parent.name in ("body", "html", "[document]"):
                break
            if any(self._is_other_link(a, own, links) for a in parent.find_all("a", href=True)):
                break
            node = parent
            text = node.get_text(" ", strip=True)
            if DATE_RE.search(text):
                break
        return text

    def _preceding_texts(self, anchor: Tag, links: Dict[int, str]) -> Iterable[str]:
        """Text nodes before ``anchor``, nearest first, up to the previous detail link."""
        own = links[id(anchor)]
        found = 0
        for element in anchor.previous_elements:
            if isinstance(element, Tag):
                if self._is_other_link(element, own, links):
                    return
                continue
            if isinstance(element, PreformattedString) or element.parent is None:
                continue
            if element.parent.name in _SKIP_TEXT_PARENTS:
                continue
            if self._is_other_link(element.find_parent("a"), own, links):
                return
            text = _clean(element)
            if not text:
                continue
            yield text
            found += 1
            if found >= self.lookback:
                return

    def _context(
        self, anchor: Tag, links: Dict[int, str], page: PageContext
    ) -> Tuple[Optional[datetime], str]:
        block = self._block_text(anchor, links)
        published = parse_dotted_date(block, page.tz)
        if published is not None:
            return published, find_category(block)

        category = find_category(block)
        for text in self._preceding_texts(anchor, links):
            if published is None:
                published = parse_dotted_date(text, page.tz)
            if not category:
                category = find_category(text)
            if published is not None and category:
                break
        return published, category

    def extract(self, soup: BeautifulSoup, page: PageContext) -> List[EventRecord]:
        matched = []
        links: Dict[int, str] = {}
        for anchor in soup.find_all("a", href=True):
            absolute = urljoin(page.url, anchor["href"].strip())
            if self.pattern.search(urlparse(absolute).path):
                matched.append((anchor, absolute))
                links[id(anchor)] = absolute

        out: List[EventRecord] = []
        seen = set()
        for anchor, absolute in matched:
            title = _clean(anchor.get_text(" "))
            if len(title) < self.min_title_length or absolute in seen:
                continue
            seen.add(absolute)

            published, category = self._context(anchor, links, page)
            out.append(
                _record(
                    page,
                    index=len(out) + 1,
                    title=title,
                    url=absolute,
                    published=published,
                    category=category,
                )
            )
        return out


# --------------------------------------------------------------------------- #
# 3. Plain text blocks
# --------------------------------------------------------------------------- #
class TextBlockStrategy(ExtractionStrategy):
    """Date line, then ``[category]`` line, then title line."""

    name = "text_block"

    def __init__(self, *, min_title_length: int = 8) -> None:
        self.min_title_length = min_title_length

    @staticmethod
    def _lines(soup: BeautifulSoup) -> List[str]:
        lines: List[str] = []
        for text in soup.find_all(string=True):
            if isinstance(text, PreformattedString) or text.parent is None:
                continue
            if text.parent.name in _SKIP_TEXT_PARENTS:
                continue
            for line in str(text).splitlines():
                line = _clean(line)
                if line:
                    lines.append(line)
        return lines

    @staticmethod
    def _date_line(line: str, page: PageContext) -> Optional[datetime]:
        if not DATE_LINE_RE.match(line):
            return None
        return parse_dotted_date(line, page.tz)

    def extract(self, soup: BeautifulSoup, page: PageContext) -> List[EventRecord]:
        out: List[EventRecord] = []
        date: Optional[datetime] = None
        category: Optional[str] = None

        for line in self._lines(soup):
            if date is None:
                date = self._date_line(line, page)
                continue
            if category is None:
                match = CATEGORY_LINE_RE.match(line)
                if match:
                    category = match.group(1).strip()
                else:
                    date = self._date_line(line, page)
                continue
            if len(line) >= self.min_title_length:
                out.append(
                    _record(
                        page,
                        index=len(out) + 1,
                        title=line,
                        url=None,
                        published=date,
                        category=category,
                    )
                )
                date, category = None, None
                continue
            date, category = self._date_line(line, page), None
        return out


# --------------------------------------------------------------------------- #
# Chain
# --------------------------------------------------------------------------- #
STRATEGIES: Dict[str, Type[ExtractionStrategy]] = {
    SelectorListStrategy.name: SelectorListStrategy,
    LinkPatternStrategy.name: LinkPatternStrategy,
    TextBlockStrategy.name: TextBlockStrategy,
}


def build_strategy(definition: Any) -> ExtractionStrategy:
    """Strategy from an instance, a type name, or ``{"type": name, **kwargs}``."""
    if isinstance(definition, ExtractionStrategy):
        return definition
    if isinstance(definition, str):
        definition = {"type": definition}
    if not isinstance(definition, Mapping) or "type" not in definition:
        raise ValueError(f"Invalid strategy definition: {definition!r}")
    kwargs = {k: v for k, v in definition.items() if k != "type"}
    try:
        cls = STRATEGIES[definition["type"]]
    except KeyError:
        raise ValueError(
            f"Unknown strategy '{definition['type']}'. Available: {sorted(STRATEGIES)}"
        ) from None
    return cls(**kwargs)


def default_chain() -> List[ExtractionStrategy]:
    return [SelectorListStrategy(), LinkPatternStrategy(), TextBlockStrategy()]


def run_chain(
    strategies: Sequence[ExtractionStrategy],
    soup: BeautifulSoup,
    page: PageContext,
) -> List[EventRecord]:
    """Result of the first strategy that finds anything."""
    for strategy in strategies:
        try:
            records = strategy.extract(soup, page)
        except Exception as e:  # noqa: BLE001
            logger.warning(f"{page.source}: strategy {strategy.name} failed: {e}")
            continue
        if records:
            logger.debug(f"{page.source}: {strategy.name} extracted {len(records)} records")
            return records
        logger.debug(f"{page.source}: {strategy.name} found nothing")
    return []
