"""Command registry mapping command names to handlers."""

from typing import Callable, Dict, List

from rich.console import Console

from ..errors import UnknownCommandError
from .state import Command, State

console = Console()

Handler = Callable[[State, Command], None]


class CommandRegistry:
    """Look up and run command handlers by name."""

    def __init__(self) -> None:
        """Initialize command registry."""
        self._handlers: Dict[str, Handler] = {}

    def register(self, name: str, handler: Handler) -> None:
        """Register a handler. The first registration of a name wins."""
        if name not in self._handlers:
            self._handlers[name] = handler

    def names(self) -> List[str]:
        """Registered command names, in registration order."""
        return list(self._handlers)

    def run(self, state: State, command: Command) -> None:
        """Run the handler registered for ``command.name``."""
        handler = self._handlers.get(command.name)
        if handler is None:
            raise UnknownCommandError(f"unknown command {command.name!r}, try 'gator help'")
        return handler(state, command)

    def handle_help(self, state: State, command: Command) -> None:
        """List available commands."""
        console.print("[bold]Available commands:[/bold]")
        for name in self.names():
            console.print(f"  - {name}")
