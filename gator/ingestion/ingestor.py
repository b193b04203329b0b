"""Turn parsed feed items into stored posts."""

from datetime import datetime
from typing import Dict, Iterable, Optional

import pendulum
from rich.console import Console
from rich.markup import escape

from ..models import Feed
from .models import RSSItem

console = Console()

# RSS 2.0 pubDate, e.g. "Mon, 02 Jan 2006 15:04:05 +0000"
# with the weekday dropped before parsing.
PUBLISHED_FORMAT = "DD MMM YYYY HH:mm:ss ZZ"
UTC_ZONE_NAMES = ("GMT", "UTC", "UT", "Z")


def parse_published(value: Optional[str]) -> Optional[datetime]:
    """Parse a publish-date string in the strict RSS format, or return None."""
    if not value:
        return None

    text = value.strip()
    weekday, sep, rest = text.partition(", ")
    if sep and weekday.isalpha():
        text = rest

    head, _, zone = text.rpartition(" ")
    if zone in UTC_ZONE_NAMES:
        text = f"{head} +0000"

    try:
        return pendulum.from_format(text, PUBLISHED_FORMAT, locale="en")
    except ValueError:
        return None


class PostIngestor:
    """Store feed items as posts."""

    def __init__(self, queries) -> None:
        """Initialize post ingestor."""
        self.queries = queries

    def ingest(self, feed: Feed, items: Iterable[RSSItem]) -> Dict[str, int]:
        """
        Store one post per item, in order.

        Items with an unparseable publish date are stamped with the current
        time. A storage error stops the batch; posts already stored stay.

        Returns:
            Statistics dictionary
        """
        stats = {
            "total": 0,
            "new": 0,
            "duplicates": 0,
        }

        for item in items:
            stats["total"] += 1

            published_at = parse_published(item.published)
            if published_at is None:
                published_at = pendulum.now("UTC")

            post = self.queries.create_post(
                title=item.title,
                url=item.link,
                description=item.description,
                published_at=published_at,
                feed_id=feed.id,
            )

            if post is None:
                stats["duplicates"] += 1
                continue

            stats["new"] += 1
            console.print(f"[green]+[/green] {escape(item.title)} [dim]({escape(feed.name)})[/dim]")

        return stats
