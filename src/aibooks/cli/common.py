"""Shared CLI plumbing: option types, config loading, error mapping, JSON output."""

from __future__ import annotations

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Any, Iterator

import typer
from rich.console import Console

from aibooks.cli.errors import (
    err_config,
    err_corrupt_state,
    err_invalid_input,
    err_library_exists,
    err_library_not_found,
)
from aibooks.config import AIBooksConfig, ConfigError, load_config
from aibooks.db.store import LibraryStore
from aibooks.engine.chunker import Chunker
from aibooks.errors import AlreadyExistsError, CorruptStateError, InputError, NotFoundError
from aibooks.service import LibraryService

console = Console()

DbOption = Annotated[
    Path | None,
    typer.Option("--db", help="Path to the library database (default: store.path from config)."),
]
NameOption = Annotated[str, typer.Option("--name", "-n", help="Library name.")]
JsonOption = Annotated[
    bool, typer.Option("--json", help="Print the structured result as JSON.")
]


def load_settings() -> AIBooksConfig:
    """Load layered config, turning ConfigError into an exit with an actionable message."""
    try:
        return load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)


def resolve_db(db: Path | None, cfg: AIBooksConfig) -> Path:
    return db if db is not None else Path(cfg.store.path)


def build_service(store: LibraryStore, cfg: AIBooksConfig) -> LibraryService:
    try:
        chunker = Chunker(chunk_size=cfg.chunker.chunk_size, min_fill=cfg.chunker.min_fill)
    except InputError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    return LibraryService(store, chunker=chunker, n_max=cfg.codec.n_max)


@contextmanager
def reported_errors(name: str = "") -> Iterator[None]:
    """Map engine errors to rich messages followed by exit code 1."""
    try:
        yield
    except AlreadyExistsError as exc:
        console.print(err_library_exists(exc.name))
        raise typer.Exit(1)
    except NotFoundError as exc:
        console.print(err_library_not_found(exc.name))
        raise typer.Exit(1)
    except CorruptStateError as exc:
        console.print(err_corrupt_state(name, str(exc)))
        raise typer.Exit(1)
    except InputError as exc:
        console.print(err_invalid_input(str(exc)))
        raise typer.Exit(1)


def print_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))
