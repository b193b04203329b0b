"""Data models for gator."""

from .feed import Feed, FeedFollow, FeedWithOwner
from .post import Post, PostView
from .user import User

__all__ = ["Feed", "FeedFollow", "FeedWithOwner", "Post", "PostView", "User"]
