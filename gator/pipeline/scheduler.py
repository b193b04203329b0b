"""Feed aggregation scheduler.

Every tick the scheduler picks the stalest feed across all users, claims it
by stamping ``last_fetched_at``, fetches it and stores its items as posts.
The claim happens before the fetch and is never rolled back, so a broken
feed waits its turn behind every other feed instead of being retried on
each tick.
"""

import asyncio
from typing import Dict, Optional, Set

from pydantic import BaseModel, Field
from rich.console import Console
from rich.markup import escape

from ..errors import GatorError
from ..ingestion import PostIngestor, RSSFetcher
from ..models import Feed

console = Console()


class IterationResult(BaseModel):
    """Outcome of one scrape iteration."""

    feed: Feed = Field(..., description="Feed that was claimed and fetched")
    stats: Dict[str, int] = Field(default_factory=dict, description="Ingest counts: total, new, duplicates")


class FeedScheduler:
    """Fetch the stalest feed on a fixed interval."""

    def __init__(
        self,
        queries,
        fetcher: RSSFetcher,
        ingestor: Optional[PostIngestor] = None,
        interval: float = 60.0,
        max_in_flight: int = 1,
    ) -> None:
        """Initialize feed scheduler."""
        if interval <= 0:
            raise ValueError("interval must be positive")
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be at least 1")

        self.queries = queries
        self.fetcher = fetcher
        self.ingestor = ingestor or PostIngestor(queries)
        self.interval = interval
        self.max_in_flight = max_in_flight
        self._in_flight: Set[asyncio.Task] = set()
        self.ticks = 0
        self.skipped_ticks = 0

    async def scrape_next(self) -> Optional[IterationResult]:
        """Run one select, claim, fetch, ingest iteration.

        Returns None when there are no feeds. Errors raised after the claim
        propagate and leave the claim in place.
        """
        feed = await asyncio.to_thread(self.queries.get_next_feed_to_fetch)
        if feed is None:
            return None

        feed = await asyncio.to_thread(self.queries.mark_feed_fetched, feed.id)

        rss = await self.fetcher.fetch_feed(feed.url)
        console.print(f"[bold]{escape(rss.title or feed.name)}[/bold] [dim]{len(rss.items)} items[/dim]")

        stats = await asyncio.to_thread(self.ingestor.ingest, feed, rss.items)
        return IterationResult(feed=feed, stats=stats)

    async def _iterate(self) -> None:
        try:
            result = await self.scrape_next()
        except GatorError as e:
            console.print(f"[red]Scrape failed: {escape(str(e))}[/red]")
            return
        except Exception as e:
            console.print(f"[red]Scrape failed with unexpected error: {escape(str(e))}[/red]")
            return

        if result is None:
            console.print("[yellow]No feeds to fetch. Add one with 'gator addfeed'.[/yellow]")
        else:
            console.print(
                f"[dim]{escape(result.feed.name)}: {result.stats.get('new', 0)} new, "
                f"{result.stats.get('duplicates', 0)} already stored[/dim]"
            )

    def tick(self) -> Optional[asyncio.Task]:
        """Spawn one iteration, unless max_in_flight iterations are running."""
        self.ticks += 1
        if len(self._in_flight) >= self.max_in_flight:
            self.skipped_ticks += 1
            console.print(
                f"[yellow]Skipping tick: {len(self._in_flight)} scrape(s) still running[/yellow]"
            )
            return None

        task = asyncio.create_task(self._iterate())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    @property
    def in_flight(self) -> int:
        """Number of iterations currently running."""
        return len(self._in_flight)

    async def run(self, stop: Optional[asyncio.Event] = None) -> None:
        """Tick every interval until ``stop`` is set, then wait for running iterations."""
        if stop is None:
            stop = asyncio.Event()

        while not stop.is_set():
            self.tick()
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)
