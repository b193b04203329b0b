"""RSS feed fetcher."""

from typing import Optional

import feedparser
import httpx

from ..errors import HTTPError, NetworkError, ParseError
from .models import RSSFeed, RSSItem


class RSSFetcher:
    """Fetch and parse RSS feeds."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        user_agent: str = "gator",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize RSS fetcher."""
        self.timeout = timeout
        self.user_agent = user_agent
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        kwargs = {"headers": {"User-Agent": self.user_agent}, "follow_redirects": True}
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        if self.transport is not None:
            kwargs["transport"] = self.transport
        return httpx.AsyncClient(**kwargs)

    async def fetch_feed(self, url: str) -> RSSFeed:
        """Fetch a feed URL and parse the body into an RSSFeed.

        Raises:
            NetworkError: the request could not be sent or the connection failed
            HTTPError: the response body could not be read or had an error status
            ParseError: the body is not a well-formed feed document
        """
        try:
            async with self._client() as client:
                async with client.stream("GET", url) as response:
                    try:
                        body = await response.aread()
                    except httpx.HTTPError as e:
                        raise HTTPError(f"unable to read response from {url}: {e}") from e

                    if response.is_error:
                        raise HTTPError(f"{url} returned HTTP {response.status_code}")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NetworkError(f"unable to fetch {url}: {e}") from e

        return parse_feed(body, url)


def parse_feed(body: bytes, url: str = "") -> RSSFeed:
    """Parse a feed document body."""
    parsed = feedparser.parse(body)

    if parsed.bozo and not isinstance(parsed.bozo_exception, feedparser.CharacterEncodingOverride):
        raise ParseError(f"invalid feed document at {url}: {parsed.bozo_exception}")

    if not parsed.get("version"):
        raise ParseError(f"{url} is not an RSS or Atom feed")

    items = [
        RSSItem(
            title=entry.get("title", ""),
            link=entry.get("link", ""),
            description=entry.get("description"),
            published=entry.get("published"),
        )
        for entry in parsed.entries
    ]

    return RSSFeed(
        title=parsed.feed.get("title", ""),
        link=parsed.feed.get("link", ""),
        description=parsed.feed.get("description", ""),
        items=items,
    )
