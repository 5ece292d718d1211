"""aibooks query / search — retrieve ranked context from a library.

Usage:
  aibooks query  --name doc --query "orbital decay" [--top-k 8]
  aibooks search --name doc --query "orbital decay" [--max-results 10]

query prints the retrieved chunks as one context block ready for a prompt;
search prints short previews with their relevance scores.
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.markup import escape
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
from aibooks.cli.errors import err_no_db
from aibooks.db.repository import open_store

QueryOption = Annotated[str, typer.Option("--query", "-q", help="Free-text query.")]

_RULE = "=" * 80


def query_cmd(
    name: NameOption,
    query: QueryOption,
    top_k: Annotated[
        int | None,
        typer.Option("--top-k", "-k", help="Number of chunks to retrieve. Default from config."),
    ] = None,
    db: DbOption = None,
    as_json: JsonOption = False,
) -> None:
    """Retrieve the most relevant chunks of a library as extended context."""
    cfg = load_settings()
    db_path = resolve_db(db, cfg)
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)

    with open_store(db_path) as store:
        with reported_errors(name):
            result = build_service(store, cfg).query(
                name, query, cfg.retrieval.top_k if top_k is None else top_k
            )

    if as_json:
        print_json(result.as_dict())
        return

    console.print(
        f"Query results for '{escape(query)}': "
        f"{result.chunks_retrieved} chunks ({result.total_words} words)\n"
    )
    console.print(_RULE)
    console.print(result.context, markup=False, highlight=False)
    console.print(_RULE)


def search_cmd(
    name: NameOption,
    query: QueryOption,
    max_results: Annotated[
        int | None,
        typer.Option("--max-results", "-m", help="Maximum hits to show. Default from config."),
    ] = None,
    db: DbOption = None,
    as_json: JsonOption = False,
) -> None:
    """Search a library and show previews with relevance scores."""
    cfg = load_settings()
    db_path = resolve_db(db, cfg)
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)

    with open_store(db_path) as store:
        with reported_errors(name):
            result = build_service(store, cfg).search(
                name,
                query,
                cfg.retrieval.max_results if max_results is None else max_results,
                cfg.retrieval.preview_chars,
            )

    if as_json:
        print_json(result.as_dict())
        return

    table = Table(title=f"Search results for '{escape(query)}'", show_lines=True)
    table.add_column("#", justify="right")
    table.add_column("Chunk")
    table.add_column("Score", justify="right")
    table.add_column("Words", justify="right")
    table.add_column("Preview")
    for i, hit in enumerate(result.hits, start=1):
        table.add_row(
            str(i),
            hit.chunk_id,
            f"{hit.relevance_score * 100:.1f}%",
            str(hit.word_count),
            escape(hit.content_preview),
        )
    console.print(table)
