"""Command handler implementations."""

import asyncio
import re

import pydantic
from pydantic import HttpUrl, TypeAdapter
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..errors import NotFoundError, ValidationError
from ..models import User
from ..pipeline import FeedScheduler
from .middleware import logged_in
from .registry import CommandRegistry
from .state import Command, State

console = Console()

_http_url = TypeAdapter(HttpUrl)

DURATION_UNITS = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
DURATION_RE = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")


def parse_duration(value: str) -> float:
    """Parse a duration such as ``30s``, ``1m`` or ``1h30m`` into seconds."""
    text = value.strip()
    if not text or DURATION_RE.sub("", text):
        raise ValidationError(f"invalid duration {value!r}, expected e.g. 30s, 1m or 1h30m")

    seconds = sum(float(amount) * DURATION_UNITS[unit] for amount, unit in DURATION_RE.findall(text))
    if seconds <= 0:
        raise ValidationError(f"duration must be positive, got {value!r}")
    return seconds


def validate_url(url: str) -> str:
    """Check that ``url`` is an absolute http(s) URL."""
    try:
        _http_url.validate_python(url)
    except pydantic.ValidationError:
        raise ValidationError(f"invalid url {url!r}, expected an http:// or https:// URL")
    return url


def expect_args(command: Command, *names: str) -> None:
    """Require exactly the named positional arguments."""
    if len(command.args) != len(names):
        usage = " ".join(f"<{n}>" for n in names)
        raise ValidationError(
            f"usage: gator {command.name} {usage}".rstrip()
            + f" (got {len(command.args)} argument(s))"
        )


def handle_register(state: State, command: Command) -> None:
    """Create a user and make it the current user."""
    expect_args(command, "name")
    user = state.queries.create_user(command.args[0])
    state.session.set_current_user(user.name)
    console.print(f"[green]✅ Created user {escape(user.name)}[/green] [dim]({user.id})[/dim]")


def handle_login(state: State, command: Command) -> None:
    """Set the current user to an existing user."""
    expect_args(command, "name")
    name = command.args[0]
    user = state.queries.get_user(name)
    if user is None:
        raise NotFoundError(f"user {name!r} not found")
    state.session.set_current_user(user.name)
    console.print(f"[green]✅ Logged in as {escape(user.name)}[/green]")


def handle_reset(state: State, command: Command) -> None:
    """Delete every user and, by cascade, their feeds, follows and posts."""
    expect_args(command)
    deleted = state.queries.delete_all_users()
    console.print(f"[green]✅ Reset complete, deleted {deleted} user(s)[/green]")


def handle_users(state: State, command: Command) -> None:
    """List users, marking the current one."""
    expect_args(command)
    users = state.queries.get_users()
    if not users:
        console.print("[yellow]No users registered.[/yellow]")
        return

    current = state.session.current_user_name
    for user in users:
        if user.name == current:
            console.print(f"* {escape(user.name)} [cyan](current)[/cyan]")
        else:
            console.print(f"* {escape(user.name)}")


def handle_feeds(state: State, command: Command) -> None:
    """List all feeds with their owners."""
    expect_args(command)
    feeds = state.queries.get_feeds()
    if not feeds:
        console.print("[yellow]No feeds added.[/yellow]")
        return

    table = Table(title="Feeds")
    table.add_column("Name", style="cyan")
    table.add_column("URL", style="blue")
    table.add_column("Added by", style="magenta")
    table.add_column("Last fetched", style="green")

    for feed in feeds:
        table.add_row(
            escape(feed.name),
            feed.url,
            escape(feed.user_name),
            feed.last_fetched_at.strftime("%Y-%m-%d %H:%M") if feed.last_fetched_at else "never",
        )

    console.print(table)


def handle_list_follows(state: State, command: Command) -> None:
    """List every follow of every user."""
    expect_args(command)
    follows = state.queries.get_feed_follows()
    if not follows:
        console.print("[yellow]No follows.[/yellow]")
        return

    table = Table(title="Follows")
    table.add_column("User", style="magenta")
    table.add_column("Feed", style="cyan")
    table.add_column("URL", style="blue")

    for follow in follows:
        table.add_row(escape(follow.user_name), escape(follow.feed_name), follow.feed_url)

    console.print(table)


def handle_add_feed(state: State, command: Command, user: User) -> None:
    """Add a feed for the current user and follow it."""
    expect_args(command, "name", "url")
    name, url = command.args
    validate_url(url)

    # Make sure the URL actually serves a feed before storing it
    rss = asyncio.run(state.fetcher.fetch_feed(url))

    feed = state.queries.create_feed(name, url, user.id)
    state.queries.create_feed_follow(user.id, feed.id)

    console.print(f"[green]✅ Added feed {escape(feed.name)}[/green] ({feed.url}), {len(rss.items)} items available")
    console.print(f"[green]✅ {escape(user.name)} now follows {escape(feed.name)}[/green]")


def handle_follow(state: State, command: Command, user: User) -> None:
    """Follow an existing feed by URL."""
    expect_args(command, "url")
    url = validate_url(command.args[0])

    feed = state.queries.get_feed_by_url(url)
    if feed is None:
        raise NotFoundError(f"no feed with url {url!r}, add it with 'gator addfeed <name> <url>'")

    follow = state.queries.create_feed_follow(user.id, feed.id)
    console.print(f"[green]✅ {escape(follow.user_name)} now follows {escape(follow.feed_name)}[/green]")


def handle_unfollow(state: State, command: Command, user: User) -> None:
    """Stop following a feed by URL."""
    expect_args(command, "url")
    url = validate_url(command.args[0])

    follows = state.queries.get_feed_follows_for_user(user.id)
    follow = next((f for f in follows if f.feed_url == url), None)
    if follow is None:
        raise NotFoundError(f"{user.name} does not follow {url!r}")

    state.queries.delete_feed_follow(user.id, follow.feed_id)
    console.print(f"[green]✅ {escape(user.name)} unfollowed {escape(follow.feed_name)}[/green]")


def handle_following(state: State, command: Command, user: User) -> None:
    """List the feeds the current user follows."""
    expect_args(command)
    follows = state.queries.get_feed_follows_for_user(user.id)
    if not follows:
        console.print(f"[yellow]{escape(user.name)} does not follow any feeds.[/yellow]")
        return

    console.print(f"[bold]{escape(user.name)} follows:[/bold]")
    for follow in follows:
        console.print(f"  - {escape(follow.feed_name)} [dim]{follow.feed_url}[/dim]")


def handle_browse(state: State, command: Command, user: User) -> None:
    """Show the newest posts from followed feeds."""
    if len(command.args) > 1:
        raise ValidationError("usage: gator browse [limit]")

    limit = state.session.config.browse.default_limit
    if command.args:
        try:
            limit = int(command.args[0])
        except ValueError:
            raise ValidationError(f"limit must be a number, got {command.args[0]!r}")
        if limit < 1:
            raise ValidationError(f"limit must be at least 1, got {limit}")

    posts = state.queries.get_posts_for_user(user.id, limit)
    if not posts:
        console.print("[yellow]No posts yet. Run 'gator agg <duration>' to fetch feeds.[/yellow]")
        return

    for post in posts:
        console.print(f"\n[bold cyan]{escape(post.title)}[/bold cyan]")
        console.print(f"[dim]{escape(post.feed_name)} · {post.published_at.strftime('%Y-%m-%d %H:%M')}[/dim]")
        if post.description:
            console.print(post.description, markup=False)
        console.print(f"[blue]{post.url}[/blue]")


def handle_agg(state: State, command: Command) -> None:
    """Fetch the stalest feed every <duration> until interrupted."""
    expect_args(command, "duration")
    interval = parse_duration(command.args[0])

    aggregator = state.session.config.aggregator
    scheduler = FeedScheduler(
        state.queries,
        state.fetcher,
        interval=interval,
        max_in_flight=aggregator.max_in_flight,
    )

    console.print(f"[bold]Collecting feeds every {escape(command.args[0])}[/bold] [dim](Ctrl+C to stop)[/dim]")
    try:
        asyncio.run(scheduler.run())
    except KeyboardInterrupt:
        console.print("\n[yellow]Aggregation stopped by user[/yellow]")


def handle_init(state: State, command: Command) -> None:
    """Create the database schema."""
    expect_args(command)
    state.queries.init_database()
    console.print("[green]✅ Database schema initialized[/green]")


def build_registry() -> CommandRegistry:
    """Create a registry with every gator command."""
    registry = CommandRegistry()
    registry.register("init", handle_init)
    registry.register("register", handle_register)
    registry.register("login", handle_login)
    registry.register("reset", handle_reset)
    registry.register("users", handle_users)
    registry.register("feeds", handle_feeds)
    registry.register("listfollows", handle_list_follows)
    registry.register("addfeed", logged_in(handle_add_feed))
    registry.register("follow", logged_in(handle_follow))
    registry.register("unfollow", logged_in(handle_unfollow))
    registry.register("following", logged_in(handle_following))
    registry.register("browse", logged_in(handle_browse))
    registry.register("agg", handle_agg)
    registry.register("help", registry.handle_help)
    return registry
