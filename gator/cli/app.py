"""Main CLI application."""

from pathlib import Path
from typing import List, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

# Load .env file if it exists
load_dotenv()

from ..commands import Command, State, build_registry
from ..config import default_config_path
from ..db import Queries, close_connection_pool
from ..errors import GatorError
from ..session import Session

console = Console()

app = typer.Typer(
    name="gator",
    help="Gator - RSS Aggregator Command Line Interface",
    add_completion=False,
)


@app.command(context_settings={"ignore_unknown_options": True})
def main(
    name: Optional[str] = typer.Argument(None, help="Command to run, see 'gator help'"),
    args: Optional[List[str]] = typer.Argument(None, help="Command arguments"),
    config_path: Path = typer.Option(
        default_config_path(),
        "--config",
        "-c",
        envvar="GATOR_CONFIG",
        help="Config file",
    ),
) -> None:
    """Run a gator command."""
    if not name:
        console.print("[red]gator: a command is required, run 'gator help' to list commands[/red]")
        raise typer.Exit(1)

    registry = build_registry()
    command = Command(name=name, args=args or [])

    try:
        session = Session.load(config_path)
        state = State(session, Queries(session.db_config))
        registry.run(state, command)
    except GatorError as e:
        console.print(f"[red]gator: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    finally:
        close_connection_pool()


if __name__ == "__main__":
    app()
