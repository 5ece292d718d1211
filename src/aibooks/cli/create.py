"""aibooks create / append — build a library from text and grow it later.

Usage:
  aibooks create --name doc --file book.txt [--n-max 15]
  aibooks create --name notes --text "Some text to remember."
  aibooks append --name doc --file chapter-2.txt
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn

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
from aibooks.cli.errors import err_invalid_input, err_no_text
from aibooks.db.repository import open_store

FileOption = Annotated[
    Path | None,
    typer.Option("--file", "-f", help="UTF-8 text file to read the library text from."),
]
TextOption = Annotated[
    str | None,
    typer.Option("--text", "-t", help="Library text given inline."),
]


def create_cmd(
    name: NameOption,
    file: FileOption = None,
    text: TextOption = None,
    n_max: Annotated[
        int | None,
        typer.Option("--n-max", help="Orbital level (deflate window 2**n bytes). Default from config."),
    ] = None,
    db: DbOption = None,
    as_json: JsonOption = False,
) -> None:
    """Create a knowledge library: chunk, encode and store the text."""
    cfg = load_settings()
    content = _read_input(file, text)

    with open_store(resolve_db(db, cfg)) as store:
        service = build_service(store, cfg)
        with reported_errors(name):
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                transient=True,
                disable=as_json,
                console=console,
            ) as prog:
                prog.add_task("Encoding chunks…", total=None)
                result = service.create(name, content, n_max)

    if as_json:
        print_json(result.as_dict())
        return

    console.print(f"[green]✓[/] Knowledge library '{escape(name)}' created")
    console.print(f"  Chunks created:    {result.chunks_created}")
    console.print(f"  Total words:       {result.total_words:,}")
    console.print(f"  Compression ratio: {result.compression_ratio:.1f}×")
    console.print(f"\n  Query it with:  aibooks query --name {escape(name)} --query <text>")


def append_cmd(
    name: NameOption,
    file: FileOption = None,
    text: TextOption = None,
    db: DbOption = None,
    as_json: JsonOption = False,
) -> None:
    """Append more text to an existing library (new chunks go after the old ones)."""
    cfg = load_settings()
    content = _read_input(file, text)

    with open_store(resolve_db(db, cfg)) as store:
        with reported_errors(name):
            result = build_service(store, cfg).append(name, content)

    if as_json:
        print_json(result.as_dict())
        return

    console.print(f"[green]✓[/] Appended {result.chunks_added} chunks to '{escape(name)}'")
    console.print(
        f"  Total chunks: {result.total_chunks}  |  "
        f"Compression ratio: {result.compression_ratio:.1f}×"
    )


def _read_input(file: Path | None, text: str | None) -> str:
    if file is None and text is None:
        console.print(err_no_text())
        raise typer.Exit(1)
    if file is None:
        return text
    try:
        return file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        console.print(err_invalid_input(f"Cannot read '{file}': {exc}"))
        raise typer.Exit(1)
