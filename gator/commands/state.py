"""Shared state handed to every command handler."""

from typing import List, Optional

from pydantic import BaseModel, Field

from ..ingestion import RSSFetcher
from ..session import Session


class Command(BaseModel):
    """A command name and its positional arguments."""

    name: str = Field(..., description="Command name")
    args: List[str] = Field(default_factory=list, description="Positional arguments")


class State:
    """Process state: session, storage and feed fetcher."""

    def __init__(self, session: Session, queries, fetcher: Optional[RSSFetcher] = None) -> None:
        """Initialize state."""
        self.session = session
        self.queries = queries
        if fetcher is None:
            aggregator = session.config.aggregator
            fetcher = RSSFetcher(timeout=aggregator.timeout, user_agent=aggregator.user_agent)
        self.fetcher = fetcher
