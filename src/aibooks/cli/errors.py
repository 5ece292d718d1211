"""AI Books rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from aibooks.cli.errors import err_library_not_found
    console.print(err_library_not_found("doc"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from rich.markup import escape


def err_no_db(db_path: str = ".aibooks.db") -> str:
    """No library database at the given path."""
    return (
        f"[red]Error:[/] No library database found at '{escape(db_path)}'.\n"
        "  Run:  aibooks create --name <name> --file <path>  to create one."
    )


def err_library_exists(name: str) -> str:
    """create called with a name that is already stored."""
    return (
        f"[red]Error:[/] Library '{escape(name)}' already exists.\n"
        f"  Use a different --name, or remove it first:  aibooks delete --name {escape(name)}"
    )


def err_library_not_found(name: str) -> str:
    """Operation on a library name that is not stored."""
    return (
        f"[red]Error:[/] Library '{escape(name)}' not found.\n"
        "  Run:  aibooks list  to see available libraries, or create it with  aibooks create"
    )


def err_invalid_input(detail: str) -> str:
    """Malformed query, limit, n_max or unreadable input."""
    return (
        f"[red]Error:[/] Invalid input: {escape(detail)}\n"
        "  Run:  aibooks <command> --help  to see accepted values."
    )


def err_no_text() -> str:
    """Neither --text nor --file given."""
    return (
        "[red]Error:[/] No input text.\n"
        "  Use:  --file PATH  or  --text TEXT"
    )


def err_corrupt_state(name: str, detail: str) -> str:
    """Stored encoded state cannot be decoded."""
    return (
        f"[red]Error:[/] Library '{escape(name)}' holds a corrupt encoded state: {escape(detail)}\n"
        f"  Run:  aibooks verify --name {escape(name)}  then delete and re-create the library."
    )


def err_config(detail: str) -> str:
    """aibooks.yaml / ~/.aibooks/config.yaml / AIBOOKS_* holds an invalid value."""
    return (
        f"[red]Error:[/] Invalid configuration: {escape(detail)}\n"
        "  Fix the value in aibooks.yaml, ~/.aibooks/config.yaml or the AIBOOKS_* environment variable."
    )


def warn_integrity_failed(name: str, failed_ids: list[str]) -> str:
    """verify found chunks whose decode no longer matches the stored hash."""
    shown = ", ".join(failed_ids[:10])
    more = f" (+{len(failed_ids) - 10} more)" if len(failed_ids) > 10 else ""
    return (
        f"[yellow]⚠[/] Failed chunks: {escape(shown)}{more}\n"
        f"  Re-create the library from its source:  aibooks delete --name {escape(name)} --yes"
    )


def warn_library_not_found(name: str) -> str:
    """delete on a name that is not stored; nothing to do."""
    return (
        f"[yellow]Library not found:[/] '{escape(name)}' is not in the store.\n"
        "  Run:  aibooks list  to see all libraries."
    )
