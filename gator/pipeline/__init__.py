"""Background feed aggregation."""

from .scheduler import FeedScheduler, IterationResult

__all__ = ["FeedScheduler", "IterationResult"]
