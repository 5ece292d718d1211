"""Library store contract and its in-memory implementation.

The engine never persists anything itself; the service layer receives a
store and treats it as a ``name -> Library`` mapping. Concurrent writers get
last-writer-wins semantics: ``save`` replaces whatever was stored.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from aibooks.engine.models import Library


class LibraryStore(ABC):
    """Abstract ``name -> Library`` mapping."""

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Return True if a library called *name* is stored."""

    @abstractmethod
    def get(self, name: str) -> Library | None:
        """Return the library called *name*, or None."""

    @abstractmethod
    def save(self, library: Library) -> None:
        """Insert *library*, replacing any stored library with the same name."""

    @abstractmethod
    def delete(self, name: str) -> bool:
        """Delete *name*; return False if nothing was stored under it."""

    @abstractmethod
    def list_libraries(self) -> list[Library]:
        """Return all libraries ordered by creation time, then name."""

    def close(self) -> None:
        """Release any resources held by the store."""


class MemoryLibraryStore(LibraryStore):
    """Process-local store; contents vanish with the process."""

    def __init__(self) -> None:
        self._libraries: dict[str, Library] = {}

    def exists(self, name: str) -> bool:
        return name in self._libraries

    def get(self, name: str) -> Library | None:
        return self._libraries.get(name)

    def save(self, library: Library) -> None:
        self._libraries[library.name] = library

    def delete(self, name: str) -> bool:
        return self._libraries.pop(name, None) is not None

    def list_libraries(self) -> list[Library]:
        return sorted(self._libraries.values(), key=lambda lib: (lib.created_at, lib.name))
