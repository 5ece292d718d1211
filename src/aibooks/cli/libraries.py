"""aibooks list / stats / delete — library lifecycle and statistics.

Usage:
  aibooks list
  aibooks stats  --name doc
  aibooks delete --name doc [--yes]
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from aibooks.cli.common import (
    DbOption,
    JsonOption,
    NameOption,
    build_service,
    console,
    load_settings,
    print_json,
    reported_errors,
    resolve_db,
)
from aibooks.cli.errors import err_no_db, warn_library_not_found
from aibooks.db.repository import open_store
from aibooks.service import DeleteResult


def list_cmd(db: DbOption = None, as_json: JsonOption = False) -> None:
    """List all knowledge libraries with their statistics."""
    cfg = load_settings()
    db_path = resolve_db(db, cfg)

    summaries = []
    if db_path.exists():
        with open_store(db_path) as store:
            with reported_errors():
                summaries = build_service(store, cfg).list_libraries()

    if as_json:
        print_json(
            {
                "libraries": [s.as_dict() for s in summaries],
                "total_libraries": len(summaries),
            }
        )
        return

    if not summaries:
        console.print("No libraries created yet.")
        console.print("  Run:  aibooks create --name <name> --file <path>")
        return

    table = Table(title=f"Available libraries ({len(summaries)})")
    table.add_column("Name", style="bold")
    table.add_column("Chunks", justify="right")
    table.add_column("Compression", justify="right")
    table.add_column("Created")
    for s in summaries:
        table.add_row(
            escape(s.name),
            str(s.chunks_count),
            f"{s.compression_ratio:.1f}×",
            _short_date(s.created_at),
        )
    console.print(table)


def stats_cmd(name: NameOption, db: DbOption = None, as_json: JsonOption = False) -> None:
    """Show detailed statistics for one library."""
    cfg = load_settings()
    db_path = resolve_db(db, cfg)
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)

    with open_store(db_path) as store:
        with reported_errors(name):
            stats = build_service(store, cfg).stats(name)

    if as_json:
        print_json(stats.as_dict())
        return

    lines = [
        f"Total chunks:       {stats.total_chunks}",
        f"Total words:        {stats.total_words:,}",
        f"Total characters:   {stats.total_characters:,}",
        f"Compression ratio:  {stats.compression_ratio:.1f}×",
        f"Average chunk size: {stats.average_chunk_size:.0f} words",
        f"Orbital level:      n_max = {stats.n_max}",
        f"Created:            {stats.created_at}",
        f"Updated:            {stats.updated_at}",
    ]
    console.print(
        Panel("\n".join(lines), title=f"[bold]Statistics for '{escape(name)}'[/]", expand=False)
    )


def delete_cmd(
    name: NameOption,
    db: DbOption = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
    as_json: JsonOption = False,
) -> None:
    """Permanently delete a knowledge library."""
    cfg = load_settings()
    db_path = resolve_db(db, cfg)

    if not db_path.exists():
        _report_missing(name, as_json)
        return

    with open_store(db_path) as store:
        service = build_service(store, cfg)
        if not store.exists(name):
            _report_missing(name, as_json)
            return

        if not yes:
            console.print(f"\nDelete library: [bold]{escape(name)}[/]")
            if not typer.confirm("Confirm deletion?", default=False):
                console.print("[dim]Cancelled.[/]")
                raise typer.Exit(0)

        result = service.delete(name)

    if as_json:
        print_json(result.as_dict())
        return
    console.print(f"[green]✓[/] {escape(result.message)}")


def _report_missing(name: str, as_json: bool) -> None:
    if as_json:
        print_json(DeleteResult(deleted=False, library_name=name).as_dict())
        return
    console.print(warn_library_not_found(name))


def _short_date(timestamp: str) -> str:
    try:
        return datetime.fromisoformat(timestamp).date().isoformat()
    except ValueError:
        return timestamp
