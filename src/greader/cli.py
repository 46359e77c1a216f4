"""CLI entry point."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from greader.core.client import ReaderClient
from greader.core.config import Settings, get_settings
from greader.core.exceptions import ReaderError
from greader.executor.batch import BatchOrchestrator
from greader.models.feed import Feed

T = TypeVar("T")

app = typer.Typer(
    name="greader",
    help="Google Reader API client",
    no_args_is_help=True,
)
console = Console()


class JsonFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(settings: Settings) -> None:
    """Set up the root logger from ``log_level`` / ``log_format``."""
    if settings.log_format == "json":
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
    else:
        handler = RichHandler(console=Console(stderr=True), show_path=False)
    logging.basicConfig(level=settings.log_level.upper(), handlers=[handler], force=True)


def _run(operation: Callable[[ReaderClient], Awaitable[T]]) -> T:
    """Run ``operation`` with a client built from the environment."""
    settings = get_settings()
    configure_logging(settings)

    async def main() -> T:
        async with ReaderClient.from_settings(settings) as client:
            return await operation(client)

    try:
        return asyncio.run(main())
    except ReaderError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(code=1) from e


@app.command()
def version() -> None:
    """Show version."""
    from greader import __version__

    console.print(f"greader {__version__}")


@app.command()
def feeds() -> None:
    """List subscribed feeds with unread counts."""
    result = _run(lambda client: client.get_feeds())

    table = Table(title="Subscriptions")
    table.add_column("Title")
    table.add_column("URL")
    table.add_column("Unread", justify="right")
    for feed in sorted(result, key=lambda f: f.title.lower()):
        table.add_row(feed.title, feed.url, str(feed.unread_count))
    console.print(table)


@app.command()
def entries(
    feed_id: str = typer.Argument(..., help="Feed id, e.g. feed/https://example.com/rss"),
    count: int = typer.Option(0, "--count", "-n", help="1-1000 for latest entries, else unread"),
) -> None:
    """List entries of a feed."""
    result = _run(lambda client: client.get_entries(feed_id, count))

    for entry in result:
        published = entry.published.strftime("%Y-%m-%d %H:%M")
        console.print(f"[dim]{published}[/dim] {entry.title or '[No title]'}")
        if entry.link:
            console.print(f"    {entry.link}", style="cyan")


@app.command("mark-read")
def mark_read(
    feed_id: Optional[str] = typer.Argument(None, help="Feed id to mark as read"),
    entry: Optional[list[str]] = typer.Option(None, "--entry", "-e", help="Entry id (repeatable)"),
) -> None:
    """Mark a feed, or individual entries, as read."""
    if not feed_id and not entry:
        console.print("[red]Error:[/red] give a feed id or at least one --entry")
        raise typer.Exit(code=2)

    async def operation(client: ReaderClient) -> int:
        if entry:
            await BatchOrchestrator(client, client.settings.max_concurrency).mark_entries_as_read(entry)
            return len(entry)
        target = Feed(id=feed_id)
        # the subscription title goes along with mark-all-as-read
        for feed in await client.get_feeds():
            if feed == target:
                target = feed
        await client.mark_as_read(target)
        return 1

    marked = _run(operation)
    console.print(f"[green]Marked {marked} item(s) as read[/green]")


if __name__ == "__main__":
    app()
