"""Exception taxonomy shared by the engine, the stores and the CLI.

Every error is terminal for the single operation that raised it: nothing is
retried internally and no partial result is returned.
"""

from __future__ import annotations


class AIBooksError(Exception):
    """Base class for all AI Books errors."""


class AlreadyExistsError(AIBooksError):
    """Raised when creating a library under a name that is already taken."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Library '{name}' already exists. "
            "Use a different name or delete the existing library first."
        )
        self.name = name


class NotFoundError(AIBooksError, LookupError):
    """Raised when an operation targets a library name that is not stored."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Library '{name}' not found.")
        self.name = name


class CorruptStateError(AIBooksError):
    """Raised when an encoded state is internally inconsistent."""


class InputError(AIBooksError, ValueError):
    """Raised for malformed caller input (query, top_k, n_max, unreadable files)."""
