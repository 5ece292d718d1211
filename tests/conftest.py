"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from aibooks.db.connection import Database
from aibooks.db.repository import SqliteLibraryStore
from aibooks.db.schema import initialize


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".aibooks.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def sqlite_store(tmp_db):
    return SqliteLibraryStore(tmp_db)


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Run from tmp_path with no global config and no AIBOOKS_* overrides."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("aibooks.config._GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml")
    for var in ("AIBOOKS_N_MAX", "AIBOOKS_TOP_K", "AIBOOKS_DB"):
        monkeypatch.delenv(var, raising=False)
    return tmp_path


# Plain English prose with no repeated phrasing. Tests that need long inputs
# cycle through its words; the cycle is longer than a chunk, so every chunk
# holds ordinary prose rather than a repeating pattern.
PROSE = """\
When the harbour town lost its ferry in the winter of the great storm, the
people who lived on the far side of the estuary had to find another way to
reach the market. Some borrowed rowing boats from cousins further up the coast.
Others walked the long road around the marshes, leaving before dawn and
returning after dark with baskets of bread, lamp oil and whatever news the
traders had carried in from the capital. The schoolmistress kept a ledger of
every crossing that spring, partly out of curiosity and partly because nobody
else thought to do it, and her notes are still the best record we have of how
a small community adapts when a single piece of infrastructure disappears.

Her first observation was that the journeys became less frequent but much
larger. Families pooled their errands, so a fisherman might deliver letters,
collect medicine for a neighbour and sell two crates of mackerel on the same
trip. The market responded by opening earlier on the days when boats were
expected, and a baker began leaving sealed loaves at the church porch for
anyone who could not make the walk. Within a month an informal timetable had
emerged, written in chalk on the door of the chandlery, listing who intended to
cross, when they planned to leave and how much space remained in their boat.

The second observation concerned trust. Before the storm most exchanges
happened face to face, and debts were settled at the counter. Afterwards people
routinely handed money, parcels and instructions to someone else, and the
schoolmistress noticed that the number of disputes actually fell. She suggested that
shared hardship made everyone more careful, though she also admitted that a
quarrel was harder to start when the other party was halfway across the water.
A retired customs officer volunteered to weigh goods on a brass scale before
departure, which settled most arguments about missing fish before they began.

Her third observation is the one historians quote most often. The temporary
arrangements proved so useful that, when a new ferry finally arrived in late
summer, several of them survived. The chalk timetable was replaced by a painted
board. The porch bread became a proper stall run by the baker's nephew. Even
the pooled errands continued for elderly residents, organised now by a small
committee that met on Thursday evenings above the post office. What began as an
improvised response to failure turned into a quieter, more cooperative way of
living that outlasted the emergency by decades.

Modern readers sometimes find the ledger disappointing because it contains so
few dramatic moments. There are no shipwrecks, no feuds and no heroic rescues,
only columns of dates, names, weights and weather. Yet that ordinariness is
precisely its value. It shows ordinary people solving a practical problem with
the tools at hand, recording their mistakes and adjusting their habits week by
week. Anyone designing a system meant to survive disruption, whether a supply
chain, a software service or a village market, could do worse than study how
those families kept bread on the table while the ferry lay broken on the shingle.

The schoolmistress herself never published the ledger. It passed to her niece, then
to a local museum, where it sat in a drawer until a graduate student
transcribed it for a thesis on coastal economies. The transcription revealed
small details the original handwriting had hidden: a note that the tide tables
printed in the almanac were wrong by nearly an hour, a sketch of a makeshift
jetty built from barrels and planks, and a recipe for a fish stew that
apparently fed twelve people for three days. Those fragments remind us that
documentation is rarely neutral. What someone chooses to write down shapes what
later generations believe mattered, and a careful observer with a pencil can
preserve an entire way of life almost by accident.
"""

PROSE_WORDS = PROSE.split()


def prose_text(word_count: int) -> str:
    """Exactly *word_count* words of prose, cycling through PROSE."""
    return " ".join(PROSE_WORDS[i % len(PROSE_WORDS)] for i in range(word_count))


@pytest.fixture
def prose():
    """Factory: ``prose(n)`` returns exactly n words of ordinary prose."""
    return prose_text
