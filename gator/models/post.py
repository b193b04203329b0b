"""Post model for ingested feed items."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from .base import DBModel


class Post(DBModel):
    """Item ingested from a feed."""

    title: str = Field(..., description="Item title")
    url: str = Field(..., description="Item link, unique within its feed")
    description: Optional[str] = Field(None, description="Item description")
    published_at: datetime = Field(..., description="Publication time, or ingestion time if unparseable")
    feed_id: UUID = Field(..., description="Foreign key to feeds table")


class PostView(Post):
    """Post joined with the name of its feed."""

    feed_name: str = Field(..., description="Feed display name")
