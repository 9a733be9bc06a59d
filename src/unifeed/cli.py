"""CLI entry point using Typer."""

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from unifeed.errors import FeedError
from unifeed.fetch import fetch_feed
from unifeed.models import Feed
from unifeed.parser import parse
from unifeed.sniff import FeedType, detect_feed_type

app = typer.Typer(
    name="unifeed",
    help="Universal feed parser - detect and parse RSS, Atom and JSON Feed documents.",
)
console = Console()

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
)

_PARSER_TYPES = {
    "universal": None,
    "u": None,
    "rss": FeedType.RSS,
    "r": FeedType.RSS,
    "atom": FeedType.ATOM,
    "a": FeedType.ATOM,
    "json": FeedType.JSON,
    "j": FeedType.JSON,
}


def _render_feed(feed: Feed) -> None:
    console.print(f"[bold]{feed.display_title}[/bold] ({feed.feed_type.value} {feed.feed_version or ''})".rstrip())
    console.print(f"Items: {len(feed.items)}")

    table = Table(title="Items")
    table.add_column("Published", style="cyan")
    table.add_column("Title", style="white")
    table.add_column("Enclosures", style="magenta")
    for item in feed.items:
        published = item.published_parsed.isoformat() if item.published_parsed else ""
        enclosures = "\n".join(
            f"{enclosure.url} ({enclosure.type or '?'}, {enclosure.length if enclosure.length is not None else '?'})"
            for enclosure in item.enclosures
        )
        table.add_row(published, item.title or "", enclosures)
    console.print(table)


@app.command()
def detect(location: str = typer.Argument(..., help="Feed URL or file path")) -> None:
    """Print the detected feed type."""
    try:
        content = fetch_feed(location)
    except FeedError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print(detect_feed_type(content).value)


@app.command("parse")
def parse_command(
    location: str = typer.Argument(..., help="Feed URL or file path"),
    parser_type: str = typer.Option("universal", "--type", "-t", help="Parser to use (universal, rss, atom, json)"),
    sort: bool = typer.Option(False, "--sort", help="Order items oldest first"),
) -> None:
    """Fetch a feed and print its items."""
    key = parser_type.strip().lower()
    if key not in _PARSER_TYPES:
        console.print(f"[bold red]Error:[/bold red] Unknown parser type: {parser_type}")
        raise typer.Exit(1)

    try:
        content = fetch_feed(location)
        feed = parse(content, feed_type=_PARSER_TYPES[key])
    except FeedError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    if sort:
        feed.sort()
    _render_feed(feed)


if __name__ == "__main__":
    app()
