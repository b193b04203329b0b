"""Database management for gator."""

from .connection import close_connection_pool, get_connection, get_connection_pool
from .init import init_database
from .queries import Queries

__all__ = [
    "Queries",
    "close_connection_pool",
    "get_connection",
    "get_connection_pool",
    "init_database",
]
