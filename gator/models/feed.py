"""Feed and feed follow models."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from .base import DBModel


class Feed(DBModel):
    """RSS feed added by a user."""

    name: str = Field(..., description="Display name")
    url: str = Field(..., description="Feed URL (globally unique)")
    user_id: UUID = Field(..., description="Foreign key to the user who added the feed")
    last_fetched_at: Optional[datetime] = Field(
        None, description="When the aggregator last claimed this feed"
    )


class FeedWithOwner(Feed):
    """Feed joined with the name of the user who added it."""

    user_name: str = Field(..., description="Owner name")


class FeedFollow(DBModel):
    """A user following a feed, joined with both names."""

    user_id: UUID = Field(..., description="Foreign key to users table")
    feed_id: UUID = Field(..., description="Foreign key to feeds table")
    user_name: str = Field(..., description="Follower name")
    feed_name: str = Field(..., description="Feed display name")
    feed_url: str = Field(..., description="Feed URL")
