"""Tests for feed selection, claiming and the tick loop."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from gator.errors import NetworkError
from gator.ingestion import RSSFeed
from gator.pipeline import FeedScheduler, IterationResult

from tests.conftest import mock_fetcher


@pytest.fixture
def owner(queries):
    return queries.create_user("alice")


def add_feeds(queries, owner, count):
    return [
        queries.create_feed(f"Feed {i}", f"http://example.com/{i}.xml", owner.id)
        for i in range(count)
    ]


class TestSelection:
    def test_never_fetched_feed_is_picked_first(self, queries, owner):
        feeds = add_feeds(queries, owner, 3)
        queries.mark_feed_fetched(feeds[0].id)
        queries.mark_feed_fetched(feeds[2].id)

        assert queries.get_next_feed_to_fetch().id == feeds[1].id

    def test_claim_moves_feed_off_the_minimum(self, queries, owner):
        feeds = add_feeds(queries, owner, 3)
        for feed in feeds:
            queries.mark_feed_fetched(feed.id)
        scheduler = FeedScheduler(queries, mock_fetcher())

        picked = queries.get_next_feed_to_fetch()
        assert picked.id == feeds[0].id

        result = asyncio.run(scheduler.scrape_next())

        assert result.feed.id == feeds[0].id
        assert queries.feeds[feeds[0].id].last_fetched_at > queries.feeds[feeds[2].id].last_fetched_at
        assert queries.get_next_feed_to_fetch().id == feeds[1].id

    def test_rotation_visits_every_feed(self, queries, owner):
        feeds = add_feeds(queries, owner, 3)
        scheduler = FeedScheduler(queries, mock_fetcher())

        visited = [asyncio.run(scheduler.scrape_next()).feed.id for _ in range(4)]

        assert visited == [feeds[0].id, feeds[1].id, feeds[2].id, feeds[0].id]


class TestScrapeNext:
    def test_no_feeds_is_a_noop(self, queries):
        assert asyncio.run(FeedScheduler(queries, mock_fetcher()).scrape_next()) is None

    def test_stores_items_as_posts(self, queries, owner):
        add_feeds(queries, owner, 1)

        result = asyncio.run(FeedScheduler(queries, mock_fetcher()).scrape_next())

        assert result.stats == {"total": 2, "new": 2, "duplicates": 0}
        assert result.feed.last_fetched_at is not None
        assert [p.title for p in queries.posts] == ["First post", "Second post"]

    def test_failed_fetch_keeps_the_claim(self, queries, owner):
        feeds = add_feeds(queries, owner, 2)
        fetcher = MagicMock()
        fetcher.fetch_feed = AsyncMock(side_effect=NetworkError("unreachable"))
        scheduler = FeedScheduler(queries, fetcher)

        with pytest.raises(NetworkError):
            asyncio.run(scheduler.scrape_next())

        assert queries.feeds[feeds[0].id].last_fetched_at is not None
        assert queries.get_next_feed_to_fetch().id == feeds[1].id
        assert queries.posts == []


class TestRunLoop:
    def test_rejects_non_positive_interval(self, queries):
        with pytest.raises(ValueError):
            FeedScheduler(queries, mock_fetcher(), interval=0)

    def test_iteration_errors_do_not_stop_the_loop(self, queries, owner):
        add_feeds(queries, owner, 2)
        fetcher = MagicMock()
        fetcher.fetch_feed = AsyncMock(side_effect=NetworkError("unreachable"))
        scheduler = FeedScheduler(queries, fetcher, interval=0.01)

        async def run_briefly():
            stop = asyncio.Event()
            task = asyncio.create_task(scheduler.run(stop))
            while fetcher.fetch_feed.await_count < 3:
                await asyncio.sleep(0.005)
            stop.set()
            await task

        asyncio.run(asyncio.wait_for(run_briefly(), timeout=5))

        assert fetcher.fetch_feed.await_count >= 3
        assert all(f.last_fetched_at is not None for f in queries.feeds.values())

    def test_ticks_are_skipped_while_an_iteration_is_running(self, queries, owner):
        add_feeds(queries, owner, 3)

        async def scenario():
            gate = asyncio.Event()

            async def slow_fetch(url):
                await gate.wait()
                return RSSFeed(title="slow")

            fetcher = MagicMock()
            fetcher.fetch_feed = slow_fetch
            scheduler = FeedScheduler(queries, fetcher, interval=60, max_in_flight=1)

            first = scheduler.tick()
            second = scheduler.tick()
            assert first is not None
            assert second is None
            assert scheduler.in_flight == 1
            assert scheduler.skipped_ticks == 1

            gate.set()
            await first
            assert scheduler.in_flight == 0
            return scheduler

        scheduler = asyncio.run(scenario())
        assert scheduler.ticks == 2

    def test_concurrent_iterations_up_to_the_cap(self, queries, owner):
        add_feeds(queries, owner, 3)

        async def scenario():
            gate = asyncio.Event()
            urls = []

            async def slow_fetch(url):
                urls.append(url)
                await gate.wait()
                return RSSFeed(title="slow")

            fetcher = MagicMock()
            fetcher.fetch_feed = slow_fetch
            scheduler = FeedScheduler(queries, fetcher, interval=60, max_in_flight=2)

            tasks = [scheduler.tick(), scheduler.tick(), scheduler.tick()]
            assert tasks[2] is None
            while len(urls) < 2:
                await asyncio.sleep(0.005)
            gate.set()
            await asyncio.gather(*[t for t in tasks if t is not None])
            return urls

        urls = asyncio.run(asyncio.wait_for(scenario(), timeout=5))
        assert len(urls) == 2


class TestIterationResult:
    def test_stats_default_to_empty(self, queries, owner):
        feed = add_feeds(queries, owner, 1)[0]

        result = IterationResult(feed=feed)

        assert result.feed.id == feed.id
        assert result.stats == {}
