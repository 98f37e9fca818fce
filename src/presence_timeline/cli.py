"""Command-line interface for the presence timeline."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from .config import TimelineSettings
from .paths import get_db_path

app = typer.Typer(help="Presence snapshot timelines and daily summaries.")

logger = logging.getLogger(__name__)


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.command()
def ingest(
    source: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="JSON array or JSON-lines file of presence snapshots.",
    ),
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the presence SQLite database.",
    ),
) -> None:
    """Validate and store presence snapshots from a file."""
    from pydantic import ValidationError

    from .db import database_connection, insert_snapshots
    from .webapp import PresencePayload

    try:
        records = _read_records(source)
        snapshots = [PresencePayload.model_validate(record).to_snapshot() for record in records]
    except (json.JSONDecodeError, ValidationError) as exc:
        typer.echo(f"Invalid snapshot data in {source}: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    with database_connection(db_path or get_db_path()) as conn:
        try:
            stored = insert_snapshots(conn, snapshots)
        except ValueError as exc:
            typer.echo(f"Rejected snapshots: {exc}", err=True)
            raise typer.Exit(code=1) from exc
    typer.echo(f"Stored {stored} snapshots.")


@app.command()
def timeline(
    user_id: str = typer.Option(..., "--user", "-u", help="User whose timeline to show."),
    date: Optional[str] = typer.Option(
        None,
        "--date",
        help="Date (YYYY-MM-DD) to show. Defaults to the most recent snapshots.",
    ),
    limit: int = typer.Option(
        100, "--limit", min=1, help="Number of recent snapshots when no date is given."
    ),
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the presence SQLite database.",
    ),
) -> None:
    """Print status and activity changes for a user."""
    from .reporting import SummaryPrinter

    target = _parse_date(date) if date else None
    printer = SummaryPrinter(
        db_path=db_path or get_db_path(),
        settings=TimelineSettings.from_options(recent_limit=limit),
    )
    printer.print_timeline(user_id, target)


@app.command()
def summary(
    user_id: str = typer.Option(..., "--user", "-u", help="User to summarize."),
    date: Optional[str] = typer.Option(
        None,
        "--date",
        help="Date (YYYY-MM-DD) to summarize. Defaults to today.",
    ),
    show_offline: bool = typer.Option(
        False, "--show-offline", help="Include time spent offline."
    ),
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the presence SQLite database.",
    ),
) -> None:
    """Print time spent per status and per activity for a specific day."""
    from .reporting import SummaryPrinter

    target = _parse_date(date) if date else datetime.now()
    printer = SummaryPrinter(
        db_path=db_path or get_db_path(),
        settings=TimelineSettings.from_options(hide_offline=not show_offline),
    )
    printer.print_daily_summary(user_id, target)


@app.command()
def users(
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the presence SQLite database.",
    ),
) -> None:
    """List users with stored snapshots."""
    from .db import database_connection, fetch_user_ids

    with database_connection(db_path or get_db_path()) as conn:
        rows = fetch_user_ids(conn)
    if not rows:
        typer.echo("No presence data stored.")
        return
    for row in rows:
        typer.echo(f"{row['user_id']:<24} {row['snapshots']}")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the API."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the API."
    ),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the presence SQLite database."
    ),
    limit: int = typer.Option(
        100, "--limit", min=1, help="Number of recent snapshots served without a date."
    ),
    open_browser: bool = typer.Option(
        False,
        "--open-browser/--no-open-browser",
        help="Open the interactive API docs in your default browser.",
    ),
    log_level: str = typer.Option(
        "info",
        "--log-level",
        help="Uvicorn log level (critical, error, warning, info, debug, trace).",
    ),
) -> None:
    """Serve the presence timeline API."""
    from .server_runner import run_server

    run_server(
        host=host,
        port=port,
        db_path=db_path or get_db_path(),
        settings=TimelineSettings.from_options(recent_limit=limit),
        open_browser=open_browser,
        log_level=log_level.lower(),
    )


def _parse_date(value: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError as exc:
        raise typer.BadParameter("Expected a date in YYYY-MM-DD format.", param_hint="--date") from exc


def _read_records(source: Path) -> list[dict[str, Any]]:
    text = source.read_text(encoding="utf-8").strip()
    if not text:
        return []
    if text.startswith("["):
        return json.loads(text)
    records = [json.loads(line) for line in text.splitlines() if line.strip()]
    logger.debug("Read %d snapshot records from %s", len(records), source)
    return records
