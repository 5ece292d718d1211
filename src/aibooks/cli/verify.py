"""aibooks verify — decode every chunk and compare it with its stored hash.

Usage:
  aibooks verify --name doc

Exit code 0 when every chunk verifies, 1 when at least one fails.
"""

from __future__ import annotations

import typer
from rich.markup import escape

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
from aibooks.cli.errors import err_no_db, warn_integrity_failed
from aibooks.db.repository import open_store


def verify_cmd(name: NameOption, db: DbOption = None, as_json: JsonOption = False) -> None:
    """Verify that every chunk of a library decodes back to its original content."""
    cfg = load_settings()
    db_path = resolve_db(db, cfg)
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)

    with open_store(db_path) as store:
        with reported_errors(name):
            report = build_service(store, cfg).verify(name)

    if as_json:
        print_json(report.as_dict())
    elif report.all_verified:
        console.print(
            f"[green]✓[/] 100% data integrity verified for '{escape(name)}': "
            f"all {report.verified_chunks} chunks passed."
        )
    else:
        console.print(
            f"[yellow]Integrity issues found in '{escape(name)}'[/]\n"
            f"  Verified: {report.verified_chunks}/{report.total_chunks}  |  "
            f"Failed: {report.failed_chunks}  |  "
            f"Integrity: {report.integrity_percentage:.1f}%"
        )
        console.print(warn_integrity_failed(name, report.failed_ids))

    if not report.all_verified:
        raise typer.Exit(1)
