"""Data models for ingestion."""

from typing import List, Optional

from pydantic import BaseModel, Field


class RSSItem(BaseModel):
    """Parsed RSS feed item."""

    title: str = Field("", description="Item title")
    link: str = Field("", description="Item URL")
    description: Optional[str] = Field(None, description="Item description/summary")
    published: Optional[str] = Field(None, description="Raw publish-date string")


class RSSFeed(BaseModel):
    """Parsed RSS channel with its items in document order."""

    title: str = Field("", description="Channel title")
    link: str = Field("", description="Channel link")
    description: str = Field("", description="Channel description")
    items: List[RSSItem] = Field(default_factory=list, description="Parsed feed items")
