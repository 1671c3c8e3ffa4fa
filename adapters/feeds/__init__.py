"""
Feeds plugin - syndication feed sources.
"""

from .fetcher import FeedAdapter, IndexedFeedAdapter

__all__ = ["FeedAdapter", "IndexedFeedAdapter"]
