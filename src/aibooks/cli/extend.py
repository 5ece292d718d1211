"""aibooks extend — one-off context from files, without storing a library.

Usage:
  aibooks extend --file a.md --file b.txt --query "retry policy" [--top-k 8]

Each file is read, chunked and encoded in turn; chunks from all files are
ranked together and the global top-k is printed. An unreadable file aborts
the whole run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from aibooks.cli.common import (
    JsonOption,
    build_service,
    console,
    load_settings,
    print_json,
    reported_errors,
)
from aibooks.cli.query import QueryOption
from aibooks.db.store import MemoryLibraryStore

_RULE = "=" * 80


def extend_cmd(
    query: QueryOption,
    file: Annotated[
        list[Path] | None,
        typer.Option("--file", "-f", help="File to load (repeatable)."),
    ] = None,
    top_k: Annotated[
        int | None,
        typer.Option("--top-k", "-k", help="Number of chunks to retrieve. Default from config."),
    ] = None,
    as_json: JsonOption = False,
) -> None:
    """Load files, rank their chunks against a query, and print the best ones."""
    cfg = load_settings()
    service = build_service(MemoryLibraryStore(), cfg)

    with reported_errors():
        result = service.extend_from_files(
            file or [], query, cfg.retrieval.top_k if top_k is None else top_k
        )

    if as_json:
        print_json(result.as_dict())
        return

    console.print(f"Processed {result.files_processed} files")
    console.print(
        f"Retrieved {len(result.chunks)} most relevant chunks "
        f"({result.total_words} words) for '{escape(query)}'"
    )
    console.print(f"Compression: {result.compression.compression_ratio:.1f}×\n")
    console.print(_RULE)
    console.print(result.extended_context, markup=False, highlight=False)
