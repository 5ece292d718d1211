"""AI Books CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from aibooks.cli.create import append_cmd, create_cmd
from aibooks.cli.extend import extend_cmd
from aibooks.cli.libraries import delete_cmd, list_cmd, stats_cmd
from aibooks.cli.query import query_cmd, search_cmd
from aibooks.cli.verify import verify_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("aibooks")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"aibooks {_installed_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="aibooks",
    help=(
        "AI Books — compressed knowledge libraries with lossless recall.\n\n"
        "  aibooks create  Chunk, encode and store a text as a named library.\n"
        "  aibooks query   Retrieve the most relevant chunks as extended context."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """AI Books — compressed knowledge libraries with lossless recall."""


app.command("create")(create_cmd)
app.command("append")(append_cmd)
app.command("query")(query_cmd)
app.command("search")(search_cmd)
app.command("extend")(extend_cmd)
app.command("list")(list_cmd)
app.command("stats")(stats_cmd)
app.command("delete")(delete_cmd)
app.command("verify")(verify_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed AI Books version."""
    typer.echo(f"aibooks {_installed_version()}")


if __name__ == "__main__":
    app()
