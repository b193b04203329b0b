"""Queries for users, feeds, follows and posts."""

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Generator, List, Optional
from uuid import UUID

import psycopg
from psycopg import errors as pg_errors

from ..errors import PersistenceError
from ..models import Feed, FeedFollow, FeedWithOwner, Post, PostView, User
from .connection import get_connection
from .init import init_database


FEED_FOLLOW_COLUMNS = """
    ff.id, ff.created_at, ff.updated_at, ff.user_id, ff.feed_id,
    u.name AS user_name, f.name AS feed_name, f.url AS feed_url
"""


@contextmanager
def translate_errors(action: str, conflict: Optional[str] = None) -> Generator[None, None, None]:
    """Re-raise psycopg errors as PersistenceError."""
    try:
        yield
    except pg_errors.UniqueViolation as e:
        raise PersistenceError(conflict or f"{action}: duplicate key") from e
    except psycopg.Error as e:
        raise PersistenceError(f"{action}: {e}") from e


class Queries:
    """Storage operations backed by the Postgres connection pool.

    Every method borrows its own pooled connection, so a single instance
    can be shared by concurrent aggregator iterations.
    """

    def __init__(self, db_config: Dict[str, Any]) -> None:
        """Initialize queries."""
        self.db_config = db_config

    def init_database(self) -> None:
        """Create the schema if it does not exist."""
        init_database(self.db_config)

    def _fetch_one(self, sql: str, params: tuple = ()) -> Optional[Dict]:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                row = cur.fetchone()
            conn.commit()
            return row

    def _fetch_all(self, sql: str, params: tuple = ()) -> List[Dict]:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return cur.fetchall()

    def _execute(self, sql: str, params: tuple = ()) -> int:
        with get_connection(self.db_config) as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                rowcount = cur.rowcount
            conn.commit()
            return rowcount

    # Users

    def create_user(self, name: str) -> User:
        """Create a user; duplicate names raise PersistenceError."""
        with translate_errors("create user", conflict=f"user {name!r} already exists"):
            row = self._fetch_one(
                "INSERT INTO users (name) VALUES (%s) RETURNING *",
                (name,),
            )
        return User(**row)

    def get_user(self, name: str) -> Optional[User]:
        """Get user by name."""
        with translate_errors("get user"):
            row = self._fetch_one("SELECT * FROM users WHERE name = %s", (name,))
        return User(**row) if row else None

    def get_users(self) -> List[User]:
        """Get all users."""
        with translate_errors("list users"):
            rows = self._fetch_all("SELECT * FROM users ORDER BY name")
        return [User(**row) for row in rows]

    def delete_all_users(self) -> int:
        """Delete every user; feeds, follows and posts cascade."""
        with translate_errors("delete users"):
            return self._execute("DELETE FROM users")

    # Feeds

    def create_feed(self, name: str, url: str, user_id: UUID) -> Feed:
        """Create a feed owned by a user."""
        with translate_errors("create feed", conflict=f"feed {url!r} already exists"):
            row = self._fetch_one(
                """
                INSERT INTO feeds (name, url, user_id)
                VALUES (%s, %s, %s)
                RETURNING *
                """,
                (name, url, user_id),
            )
        return Feed(**row)

    def get_feed_by_url(self, url: str) -> Optional[Feed]:
        """Get feed by URL."""
        with translate_errors("get feed"):
            row = self._fetch_one("SELECT * FROM feeds WHERE url = %s", (url,))
        return Feed(**row) if row else None

    def get_feeds(self) -> List[FeedWithOwner]:
        """Get all feeds with the name of the user who added them."""
        with translate_errors("list feeds"):
            rows = self._fetch_all(
                """
                SELECT f.*, u.name AS user_name
                FROM feeds f
                JOIN users u ON f.user_id = u.id
                ORDER BY f.created_at
                """
            )
        return [FeedWithOwner(**row) for row in rows]

    def get_next_feed_to_fetch(self) -> Optional[Feed]:
        """Get the feed with the oldest last_fetched_at, never-fetched first."""
        with translate_errors("select next feed"):
            row = self._fetch_one(
                """
                SELECT * FROM feeds
                ORDER BY last_fetched_at ASC NULLS FIRST, created_at ASC
                LIMIT 1
                """
            )
        return Feed(**row) if row else None

    def mark_feed_fetched(self, feed_id: UUID) -> Feed:
        """Claim a feed by stamping last_fetched_at with the current time."""
        with translate_errors("mark feed fetched"):
            row = self._fetch_one(
                """
                UPDATE feeds
                SET last_fetched_at = GREATEST(last_fetched_at, CURRENT_TIMESTAMP)
                WHERE id = %s
                RETURNING *
                """,
                (feed_id,),
            )
        if row is None:
            raise PersistenceError(f"mark feed fetched: feed {feed_id} no longer exists")
        return Feed(**row)

    # Follows

    def create_feed_follow(self, user_id: UUID, feed_id: UUID) -> FeedFollow:
        """Create a follow and return it joined with user and feed names."""
        with translate_errors("create follow", conflict="feed is already followed by this user"):
            row = self._fetch_one(
                f"""
                WITH ff AS (
                    INSERT INTO feed_follows (user_id, feed_id)
                    VALUES (%s, %s)
                    RETURNING *
                )
                SELECT {FEED_FOLLOW_COLUMNS}
                FROM ff
                JOIN users u ON ff.user_id = u.id
                JOIN feeds f ON ff.feed_id = f.id
                """,
                (user_id, feed_id),
            )
        return FeedFollow(**row)

    def get_feed_follows(self) -> List[FeedFollow]:
        """Get every follow."""
        with translate_errors("list follows"):
            rows = self._fetch_all(
                f"""
                SELECT {FEED_FOLLOW_COLUMNS}
                FROM feed_follows ff
                JOIN users u ON ff.user_id = u.id
                JOIN feeds f ON ff.feed_id = f.id
                ORDER BY ff.created_at
                """
            )
        return [FeedFollow(**row) for row in rows]

    def get_feed_follows_for_user(self, user_id: UUID) -> List[FeedFollow]:
        """Get the follows of one user."""
        with translate_errors("list follows"):
            rows = self._fetch_all(
                f"""
                SELECT {FEED_FOLLOW_COLUMNS}
                FROM feed_follows ff
                JOIN users u ON ff.user_id = u.id
                JOIN feeds f ON ff.feed_id = f.id
                WHERE ff.user_id = %s
                ORDER BY ff.created_at
                """,
                (user_id,),
            )
        return [FeedFollow(**row) for row in rows]

    def delete_feed_follow(self, user_id: UUID, feed_id: UUID) -> int:
        """Delete a follow; returns the number of rows removed."""
        with translate_errors("delete follow"):
            return self._execute(
                "DELETE FROM feed_follows WHERE user_id = %s AND feed_id = %s",
                (user_id, feed_id),
            )

    # Posts

    def create_post(
        self,
        title: str,
        url: str,
        description: Optional[str],
        published_at: datetime,
        feed_id: UUID,
    ) -> Optional[Post]:
        """Insert a post; returns None if the feed already has this link."""
        with translate_errors("create post"):
            row = self._fetch_one(
                """
                INSERT INTO posts (title, url, description, published_at, feed_id)
                VALUES (%s, %s, %s, %s, %s)
                ON CONFLICT (feed_id, url) DO NOTHING
                RETURNING *
                """,
                (title, url, description, published_at, feed_id),
            )
        return Post(**row) if row else None

    def get_posts_for_user(self, user_id: UUID, limit: int) -> List[PostView]:
        """Get the newest posts from feeds the user follows."""
        with translate_errors("list posts"):
            rows = self._fetch_all(
                """
                SELECT p.*, f.name AS feed_name
                FROM posts p
                JOIN feed_follows ff ON ff.feed_id = p.feed_id
                JOIN feeds f ON f.id = p.feed_id
                WHERE ff.user_id = %s
                ORDER BY p.published_at DESC
                LIMIT %s
                """,
                (user_id, limit),
            )
        return [PostView(**row) for row in rows]
