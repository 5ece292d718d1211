"""Tests for chunk and library integrity verification."""

from __future__ import annotations

import dataclasses
import hashlib

from aibooks.engine.codec import GravitationalCodec
from aibooks.engine.integrity import content_hash, verify_integrity, verify_library
from aibooks.engine.library import create_library, encode_chunk
from aibooks.engine.models import Chunk

codec = GravitationalCodec()


def _chunk(text: str, index: int = 0) -> Chunk:
    return encode_chunk(index, text, 15, codec)


def _with_state(chunk: Chunk, **changes) -> Chunk:
    return dataclasses.replace(
        chunk, encoded_state=dataclasses.replace(chunk.encoded_state, **changes)
    )


# ---------------------------------------------------------------------------
# content_hash
# ---------------------------------------------------------------------------


def test_content_hash_is_sha256_of_utf8():
    text = "café"
    assert content_hash(text) == hashlib.sha256(text.encode("utf-8")).hexdigest()


def test_content_hash_accepts_lone_surrogates():
    assert content_hash("\ud800") == hashlib.sha256(b"\xed\xa0\x80").hexdigest()
    assert content_hash("\ud800") != content_hash("\udcff")


def test_content_hash_differs_for_different_text():
    assert content_hash("a") != content_hash("b")


# ---------------------------------------------------------------------------
# verify_integrity
# ---------------------------------------------------------------------------


def test_fresh_chunk_verifies():
    assert verify_integrity(_chunk("The quick brown fox. " * 20)) is True


def test_empty_chunk_verifies():
    assert verify_integrity(_chunk("")) is True


def test_mutated_plain_state_fails():
    chunk = _chunk("unique words only here")
    assert chunk.encoded_state.deflated is False
    states = chunk.encoded_state.states
    tampered = _with_state(chunk, states=(states[0] ^ 1,) + states[1:])
    assert verify_integrity(tampered) is False


def test_mutated_deflated_state_fails():
    chunk = _chunk("The quick brown fox. " * 20)
    assert chunk.encoded_state.deflated is True
    states = chunk.encoded_state.states
    # Clears the final-block bit of the stream.
    tampered = _with_state(chunk, states=(states[0] ^ 0x01000000,) + states[1:])
    assert verify_integrity(tampered) is False


def test_flipped_deflated_flag_fails():
    chunk = _chunk("The quick brown fox. " * 20)
    tampered = _with_state(chunk, deflated=False)
    assert verify_integrity(tampered) is False


def test_mutated_length_fails():
    chunk = _chunk("unique words only here")
    tampered = _with_state(chunk, length=chunk.encoded_state.length - 1)
    assert verify_integrity(tampered) is False


def test_undecodable_state_fails_instead_of_raising():
    chunk = _chunk("gravitational gravitational gravitational")
    tampered = _with_state(chunk, states=(-1,))
    assert verify_integrity(tampered) is False


def test_stale_hash_fails():
    chunk = _chunk("original content")
    tampered = dataclasses.replace(chunk, content_hash=content_hash("other content"))
    assert verify_integrity(tampered) is False


def test_verify_does_not_mutate_chunk():
    chunk = _chunk("some text to keep")
    before = dataclasses.asdict(chunk)
    verify_integrity(chunk)
    assert dataclasses.asdict(chunk) == before


# ---------------------------------------------------------------------------
# verify_library
# ---------------------------------------------------------------------------


def test_fresh_library_all_verified():
    library = create_library("doc", "Orbital levels bound the dictionary. " * 300)
    report = verify_library(library)
    assert report.total_chunks == len(library.chunks) > 1
    assert report.failed_chunks == 0
    assert report.all_verified is True
    assert report.integrity_percentage == 100.0


def test_empty_library_is_vacuously_verified():
    report = verify_library(create_library("empty", ""))
    assert report.total_chunks == 0
    assert report.integrity_percentage == 100.0
    assert report.all_verified is True


def test_library_with_corrupt_chunk():
    good = _chunk("first chunk text", index=0)
    bad = _with_state(_chunk("second chunk text", index=1), states=(-42,))
    library = create_library("doc", "")
    library.chunks.extend([good, bad])

    report = verify_library(library)
    assert report.verified_chunks == 1
    assert report.failed_chunks == 1
    assert report.failed_ids == ["chunk_0001"]
    assert report.integrity_percentage == 50.0
    assert report.all_verified is False


def test_library_with_surrogates_verifies():
    library = create_library("doc", "hello \udcff world \ud800")
    assert verify_library(library).all_verified is True


def test_state_with_foreign_n_max_fails(prose):
    library = create_library("doc", prose(800), 15)
    first = library.chunks[0]
    library.chunks[0] = _with_state(first, n_max=40)

    assert verify_integrity(library.chunks[0]) is True
    report = verify_library(library)
    assert report.failed_ids == ["chunk_0000"]


def test_report_as_dict_fields():
    data = verify_library(create_library("doc", "text")).as_dict()
    assert set(data) == {
        "library_name",
        "total_chunks",
        "verified_chunks",
        "failed_chunks",
        "integrity_percentage",
        "all_verified",
    }
