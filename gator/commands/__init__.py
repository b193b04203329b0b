"""Command dispatch: registry, auth middleware and handlers."""

from .handlers import build_registry, parse_duration
from .middleware import logged_in
from .registry import CommandRegistry
from .state import Command, State

__all__ = [
    "Command",
    "CommandRegistry",
    "State",
    "build_registry",
    "logged_in",
    "parse_duration",
]
