"""Shared fixtures: an in-memory storage double and a temporary session."""

import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

import httpx
import pytest

from gator.commands import State
from gator.config import ConfigModel, save_config
from gator.errors import PersistenceError
from gator.ingestion import RSSFetcher
from gator.models import Feed, FeedFollow, FeedWithOwner, Post, PostView, User
from gator.session import Session


RSS_TWO_ITEMS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example Blog</title>
    <link>http://example.com/</link>
    <description>Posts about examples</description>
    <item>
      <title>First post</title>
      <link>http://example.com/first</link>
      <description>The first one</description>
      <pubDate>Mon, 02 Jan 2006 15:04:05 +0000</pubDate>
    </item>
    <item>
      <title>Second post</title>
      <link>http://example.com/second</link>
      <description>The second one</description>
      <pubDate>Tue, 03 Jan 2006 10:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""


class MemoryQueries:
    """In-memory stand-in for gator.db.Queries."""

    def __init__(self) -> None:
        self.users: Dict[uuid.UUID, User] = {}
        self.feeds: Dict[uuid.UUID, Feed] = {}
        self.follows: List[Dict] = []
        self.posts: List[Post] = []
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _now(self) -> datetime:
        # Strictly increasing so ordering by timestamps is deterministic
        self._clock += timedelta(seconds=1)
        return self._clock

    def init_database(self) -> None:
        pass

    def create_user(self, name: str) -> User:
        if any(u.name == name for u in self.users.values()):
            raise PersistenceError(f"user {name!r} already exists")
        now = self._now()
        user = User(id=uuid.uuid4(), name=name, created_at=now, updated_at=now)
        self.users[user.id] = user
        return user

    def get_user(self, name: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.name == name), None)

    def get_users(self) -> List[User]:
        return sorted(self.users.values(), key=lambda u: u.name)

    def delete_all_users(self) -> int:
        count = len(self.users)
        self.users.clear()
        self.feeds.clear()
        self.follows.clear()
        self.posts.clear()
        return count

    def create_feed(self, name: str, url: str, user_id: uuid.UUID) -> Feed:
        if any(f.url == url for f in self.feeds.values()):
            raise PersistenceError(f"feed {url!r} already exists")
        now = self._now()
        feed = Feed(id=uuid.uuid4(), name=name, url=url, user_id=user_id, created_at=now, updated_at=now)
        self.feeds[feed.id] = feed
        return feed

    def get_feed_by_url(self, url: str) -> Optional[Feed]:
        return next((f for f in self.feeds.values() if f.url == url), None)

    def get_feeds(self) -> List[FeedWithOwner]:
        return [
            FeedWithOwner(**f.model_dump(), user_name=self.users[f.user_id].name)
            for f in self.feeds.values()
        ]

    def get_next_feed_to_fetch(self) -> Optional[Feed]:
        if not self.feeds:
            return None
        return min(
            self.feeds.values(),
            key=lambda f: (f.last_fetched_at is not None, f.last_fetched_at or f.created_at, f.created_at),
        )

    def mark_feed_fetched(self, feed_id: uuid.UUID) -> Feed:
        feed = self.feeds[feed_id].model_copy(update={"last_fetched_at": self._now()})
        self.feeds[feed_id] = feed
        return feed

    def _follow_view(self, row: Dict) -> FeedFollow:
        feed = self.feeds[row["feed_id"]]
        return FeedFollow(
            **row,
            user_name=self.users[row["user_id"]].name,
            feed_name=feed.name,
            feed_url=feed.url,
        )

    def create_feed_follow(self, user_id: uuid.UUID, feed_id: uuid.UUID) -> FeedFollow:
        if any(r["user_id"] == user_id and r["feed_id"] == feed_id for r in self.follows):
            raise PersistenceError("feed is already followed by this user")
        row = {"id": uuid.uuid4(), "user_id": user_id, "feed_id": feed_id, "created_at": self._now()}
        self.follows.append(row)
        return self._follow_view(row)

    def get_feed_follows(self) -> List[FeedFollow]:
        return [self._follow_view(r) for r in self.follows]

    def get_feed_follows_for_user(self, user_id: uuid.UUID) -> List[FeedFollow]:
        return [self._follow_view(r) for r in self.follows if r["user_id"] == user_id]

    def delete_feed_follow(self, user_id: uuid.UUID, feed_id: uuid.UUID) -> int:
        before = len(self.follows)
        self.follows = [
            r for r in self.follows if not (r["user_id"] == user_id and r["feed_id"] == feed_id)
        ]
        return before - len(self.follows)

    def create_post(self, title, url, description, published_at, feed_id) -> Optional[Post]:
        if any(p.feed_id == feed_id and p.url == url for p in self.posts):
            return None
        post = Post(
            id=uuid.uuid4(),
            title=title,
            url=url,
            description=description,
            published_at=published_at,
            feed_id=feed_id,
            created_at=self._now(),
        )
        self.posts.append(post)
        return post

    def get_posts_for_user(self, user_id: uuid.UUID, limit: int) -> List[PostView]:
        followed = {r["feed_id"] for r in self.follows if r["user_id"] == user_id}
        posts = sorted(
            (p for p in self.posts if p.feed_id in followed),
            key=lambda p: p.published_at,
            reverse=True,
        )
        return [
            PostView(**p.model_dump(), feed_name=self.feeds[p.feed_id].name) for p in posts[:limit]
        ]


def mock_fetcher(body: bytes = RSS_TWO_ITEMS, status_code: int = 200) -> RSSFetcher:
    """RSSFetcher whose transport always answers with ``body``."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, content=body)

    return RSSFetcher(transport=httpx.MockTransport(handler))


@pytest.fixture
def queries() -> MemoryQueries:
    return MemoryQueries()


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    save_config(ConfigModel(), path)
    return path


@pytest.fixture
def session(config_path: Path) -> Session:
    return Session.load(config_path)


@pytest.fixture
def state(session: Session, queries: MemoryQueries) -> State:
    return State(session, queries, fetcher=mock_fetcher())
