"""Tests for aibooks verify."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from aibooks.cli.main import app
from aibooks.db.connection import Database

runner = CliRunner()

pytestmark = pytest.mark.usefixtures("isolated_config")


@pytest.fixture
def db(tmp_path: Path) -> Path:
    path = tmp_path / "libs.db"
    result = runner.invoke(
        app,
        ["create", "-n", "doc", "-t", "Verify every decoded chunk. " * 200, "--db", str(path), "--json"],
    )
    assert result.exit_code == 0, result.output
    return path


def _tamper_first_chunk(db: Path) -> None:
    conn = Database(db).connect()
    try:
        row = conn.execute(
            "SELECT encoded_state FROM chunks WHERE chunk_index = 0"
        ).fetchone()
        state = json.loads(row["encoded_state"])
        state["states"][0] ^= 0x01000000
        conn.execute(
            "UPDATE chunks SET encoded_state = ? WHERE chunk_index = 0", (json.dumps(state),)
        )
        conn.commit()
    finally:
        conn.close()


def test_verify_fresh_library_json(db: Path) -> None:
    result = runner.invoke(app, ["verify", "-n", "doc", "--db", str(db), "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["failed_chunks"] == 0
    assert data["all_verified"] is True
    assert data["integrity_percentage"] == 100.0
    assert data["verified_chunks"] == data["total_chunks"] > 1


def test_verify_fresh_library_message(db: Path) -> None:
    result = runner.invoke(app, ["verify", "-n", "doc", "--db", str(db)])
    assert result.exit_code == 0, result.output
    assert "100% data integrity verified" in result.output


def test_verify_detects_tampering(db: Path) -> None:
    _tamper_first_chunk(db)

    result = runner.invoke(app, ["verify", "-n", "doc", "--db", str(db), "--json"])

    assert result.exit_code == 1
    data = json.loads(result.output)
    assert data["failed_chunks"] == 1
    assert data["all_verified"] is False


def test_verify_tampering_message(db: Path) -> None:
    _tamper_first_chunk(db)
    result = runner.invoke(app, ["verify", "-n", "doc", "--db", str(db)])
    assert result.exit_code == 1
    assert "Integrity issues found" in result.output
    assert "chunk_0000" in result.output


def test_verify_missing_library_fails(db: Path) -> None:
    result = runner.invoke(app, ["verify", "-n", "ghost", "--db", str(db)])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_verify_missing_db_fails(tmp_path: Path) -> None:
    result = runner.invoke(app, ["verify", "-n", "doc", "--db", str(tmp_path / "none.db")])
    assert result.exit_code == 1
    assert "No library database" in result.output
