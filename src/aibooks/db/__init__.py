"""AI Books persistence layer — library stores."""

from aibooks.db.connection import Database
from aibooks.db.migrations import MIGRATIONS, run_migrations
from aibooks.db.repository import SqliteLibraryStore, open_store
from aibooks.db.schema import initialize
from aibooks.db.store import LibraryStore, MemoryLibraryStore

__all__ = [
    "Database",
    "LibraryStore",
    "MemoryLibraryStore",
    "MIGRATIONS",
    "SqliteLibraryStore",
    "initialize",
    "open_store",
    "run_migrations",
]
