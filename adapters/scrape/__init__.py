"""
Scrape plugin - HTML pages without a feed.
"""

from .fetcher import ScrapeAdapter
from .strategies import LinkPatternStrategy, SelectorListStrategy, TextBlockStrategy

__all__ = ["ScrapeAdapter", "SelectorListStrategy", "LinkPatternStrategy", "TextBlockStrategy"]
