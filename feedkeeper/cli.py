"""Command-line shell around the feed pipeline.

Stands in for an interactive reader: ``fetch`` downloads a feed and optionally
saves it for offline reading, ``show`` prints a previously saved feed.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from feedkeeper.cancellation import CancellationToken
from feedkeeper.config.settings import SettingsError, load_settings
from feedkeeper.errors import FeedKeeperError
from feedkeeper.models import FeedDocument, to_display
from feedkeeper.service import FeedService
from feedkeeper.storage.codec import suggested_filename

app = typer.Typer(add_completion=False, help="Download RSS/Atom feeds for offline reading.")


def _service(config: Optional[Path]) -> FeedService:
    try:
        return FeedService(load_settings(config))
    except SettingsError as exc:
        typer.echo(f"Invalid configuration: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _print_document(document: FeedDocument) -> None:
    typer.echo(document.title or "Feed")
    typer.echo(f"Source: {document.source_url}")
    typer.echo(f"Retrieved: {document.retrieved_at.isoformat()}")
    for entry in document.entries:
        display = to_display(entry)
        typer.echo("")
        typer.echo(display.title)
        typer.echo(display.publish_date_display)
        if display.link:
            typer.echo(display.link)
        if display.image_bytes is not None:
            typer.echo(f"[image: {display.image_mime_type}, {len(display.image_bytes)} bytes]")
        if display.content:
            typer.echo("")
            typer.echo(display.content)


@app.command()
def fetch(
    url: Optional[str] = typer.Argument(None, help="Feed URL; defaults to the configured feed."),
    count: Optional[int] = typer.Option(None, "--count", "-n", min=1, help="Number of entries to keep."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="File or directory to save the feed to."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, help="Settings YAML file."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print the status line."),
) -> None:
    """Download a feed and normalize its entries."""

    service = _service(config)
    feed_url = (url or service.settings.default_feed_url).strip()
    token = CancellationToken()

    typer.echo("Downloading feed...", err=True)
    try:
        document = service.fetch_feed(feed_url, count, cancel_token=token)
    except KeyboardInterrupt:
        token.cancel()
        typer.echo("Download canceled.", err=True)
        raise typer.Exit(code=130)
    except (FeedKeeperError, ValueError) as exc:
        typer.echo(f"Unable to download feed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if not quiet:
        _print_document(document)
    typer.echo(f"Loaded {len(document.entries)} entries from {document.title}.")

    if output is not None:
        target = output / suggested_filename(document) if output.is_dir() else output
        try:
            service.save_feed(document, target)
        except FeedKeeperError as exc:
            typer.echo(f"Unable to save feed: {exc}", err=True)
            raise typer.Exit(code=1) from exc
        typer.echo(f"Feed saved to {target}. You can open it even when offline.")


@app.command()
def show(
    path: Path = typer.Argument(..., help="Feed file written by 'fetch --output'."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, help="Settings YAML file."),
) -> None:
    """Print a previously saved feed."""

    service = _service(config)
    try:
        document = service.load_feed(path)
    except FeedKeeperError as exc:
        typer.echo(f"Unable to open feed: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    _print_document(document)
    typer.echo(f"Loaded feed '{document.title}' from disk.")


__all__ = ["app"]
