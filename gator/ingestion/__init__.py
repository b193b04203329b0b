"""RSS fetching and post ingestion."""

from .ingestor import PostIngestor, parse_published
from .models import RSSFeed, RSSItem
from .rss_fetcher import RSSFetcher

__all__ = [
    "PostIngestor",
    "RSSFeed",
    "RSSFetcher",
    "RSSItem",
    "parse_published",
]
