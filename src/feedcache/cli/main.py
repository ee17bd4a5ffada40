"""Main CLI entry point for feedcache.

Provides command-line inspection and maintenance of the local feed cache.
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from uuid import UUID

import click
import orjson
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from feedcache.cache import (
    CacheConfig,
    LoadFailure,
    LocalFeedLoader,
    get_cache_age_remaining,
    get_global_config,
    is_cache_valid,
)
from feedcache.models import FeedItem
from feedcache.storage import Empty, FileFeedStore, RetrievalFailure

# Global console for Rich output
console = Console()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def resolve_config(store: Optional[str] = None) -> CacheConfig:
    """Resolve cache configuration for a CLI invocation.

    Priority:
    1. Explicit --store flag
    2. Config file or FEEDCACHE_* environment variables
    3. Defaults

    Args:
        store: Store path from CLI context

    Returns:
        CacheConfig to use
    """
    config = get_global_config()
    if store:
        return CacheConfig(
            store_path=Path(store),
            max_age_days=config.max_age_days,
            lock_timeout=config.lock_timeout,
        )
    return config


def read_feed_file(path: Path) -> List[FeedItem]:
    """Read feed items from a JSON array file.

    Each entry needs ``id`` (UUID string) and ``url``; ``description`` and
    ``location`` are optional.

    Args:
        path: JSON file to read

    Returns:
        Items in file order

    Raises:
        click.ClickException: If the file is not a valid feed
    """
    try:
        entries = orjson.loads(path.read_bytes())
        if not isinstance(entries, list):
            raise ValueError("expected a JSON array of items")
        return [
            FeedItem(
                id=UUID(entry["id"]),
                description=entry.get("description"),
                location=entry.get("location"),
                url=entry["url"],
            )
            for entry in entries
        ]
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
        raise click.ClickException(f"Invalid feed file {path}: {e}") from e


def _make_loader(ctx) -> LocalFeedLoader:
    config = ctx.obj["config"]
    return LocalFeedLoader(
        FileFeedStore.from_config(config), current_date=_now, max_age=config.max_age
    )


def _feed_table(title: str, feed) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Description", style="white")
    table.add_column("Location", style="magenta")
    table.add_column("URL", style="blue")

    for item in feed:
        desc = item.description or ""
        table.add_row(
            str(item.id),
            (desc[:50] + "...") if len(desc) > 50 else desc,
            item.location or "",
            item.url,
        )
    return table


@click.group()
@click.option(
    "--store",
    "-s",
    type=click.Path(dir_okay=False),
    help="Path to the feed cache file (default: config file or FEEDCACHE_STORE_PATH)",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, store, verbose):
    """feedcache CLI - Inspect and maintain the local feed cache."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True))],
        )

    ctx.ensure_object(dict)
    ctx.obj["config"] = resolve_config(store)


@cli.command("status")
@click.pass_context
def status(ctx):
    """Show the cached snapshot, its age and whether it is still fresh.

    Example:
        feedcache status
        feedcache --store ./feed.store status
    """
    config = ctx.obj["config"]
    store = FileFeedStore.from_config(config)

    results = []
    store.retrieve(results.append)
    result = results[0]

    console.print(f"[bold]Store:[/bold] {config.store_path}")

    if isinstance(result, RetrievalFailure):
        console.print(f"[red]✗[/red] Error: {result.error}", style="red")
        sys.exit(1)

    if isinstance(result, Empty):
        console.print("[yellow]Cache is empty[/yellow]")
        return

    snapshot = result.snapshot
    now = _now()
    fresh = is_cache_valid(snapshot.timestamp, against=now, max_age=config.max_age)

    console.print(f"[bold]Timestamp:[/bold] {snapshot.timestamp.isoformat()}")
    if fresh:
        remaining = get_cache_age_remaining(
            snapshot.timestamp, against=now, max_age=config.max_age
        )
        console.print(f"[bold]Status:[/bold] [green]fresh[/green] ({remaining}s remaining)")
    else:
        console.print("[bold]Status:[/bold] [yellow]stale[/yellow]")

    console.print(_feed_table(f"Cached feed ({len(snapshot.feed)})", snapshot.feed))


@cli.command("load")
@click.pass_context
def load(ctx):
    """Load the cached feed the way consumers see it.

    Stale or missing snapshots load as an empty feed.

    Example:
        feedcache load
    """
    loader = _make_loader(ctx)

    results = []
    loader.load(results.append)
    result = results[0]

    if isinstance(result, LoadFailure):
        console.print(f"[red]✗[/red] Error: {result.error}", style="red")
        sys.exit(1)

    if not result.feed:
        console.print("[yellow]No fresh feed cached[/yellow]")
        return

    console.print(_feed_table(f"Feed ({len(result.feed)})", result.feed))


@cli.command("save")
@click.argument("feed_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def save(ctx, feed_file):
    """Replace the cached feed with items from a JSON file.

    Example:
        feedcache save feed.json
    """
    feed = read_feed_file(Path(feed_file))
    loader = _make_loader(ctx)

    errors = []
    loader.save(feed, errors.append)

    if errors[0] is not None:
        console.print(f"[red]✗[/red] Error: {errors[0]}", style="red")
        sys.exit(1)

    console.print(f"[green]✓[/green] Cached {len(feed)} items")


@cli.command("validate")
@click.pass_context
def validate(ctx):
    """Delete the cached snapshot if it is stale or unreadable.

    Example:
        feedcache validate
    """
    loader = _make_loader(ctx)

    loader.validate_cache(lambda: console.print("[green]✓[/green] Cache validated"))


@cli.command("clear")
@click.pass_context
def clear(ctx):
    """Delete the cached snapshot.

    Example:
        feedcache clear
    """
    store = FileFeedStore.from_config(ctx.obj["config"])

    errors = []
    store.delete_cached_feed(errors.append)

    if errors[0] is not None:
        console.print(f"[red]✗[/red] Error: {errors[0]}", style="red")
        sys.exit(1)

    console.print("[green]✓[/green] Cache cleared")


if __name__ == "__main__":
    cli()
