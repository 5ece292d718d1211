"""Tests for aibooks create / append."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from aibooks.cli.main import app
from aibooks.db.repository import open_store

runner = CliRunner()

pytestmark = pytest.mark.usefixtures("isolated_config")

_TEXT = "Orbital levels bound the dictionary size. " * 120


def _create(db: Path, name: str = "doc", text: str = _TEXT, *extra: str):
    return runner.invoke(
        app, ["create", "--name", name, "--text", text, "--db", str(db), "--json", *extra]
    )


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


def test_create_from_text_json(tmp_path: Path) -> None:
    result = _create(tmp_path / "libs.db")
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["library_name"] == "doc"
    assert data["chunks_created"] >= 2
    assert data["total_words"] == 720
    assert data["compression_ratio"] >= 1.0


def test_create_from_file(tmp_path: Path) -> None:
    source = tmp_path / "book.txt"
    source.write_text(_TEXT, encoding="utf-8")
    db = tmp_path / "libs.db"

    result = runner.invoke(app, ["create", "-n", "book", "-f", str(source), "--db", str(db)])

    assert result.exit_code == 0, result.output
    assert "Knowledge library 'book' created" in result.output
    with open_store(db) as store:
        assert store.get("book").total_words == 720


def test_create_ten_thousand_words_of_prose(tmp_path: Path, prose) -> None:
    source = tmp_path / "essay.txt"
    source.write_text(prose(10_000), encoding="utf-8")

    result = runner.invoke(
        app, ["create", "-n", "doc", "-f", str(source), "--db", str(tmp_path / "libs.db"), "--json"]
    )

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["chunks_created"] > 0
    assert data["total_words"] == 10_000
    assert data["compression_ratio"] >= 1.0


def test_create_persists_library(tmp_path: Path) -> None:
    db = tmp_path / "libs.db"
    _create(db)
    with open_store(db) as store:
        assert store.exists("doc")


def test_create_duplicate_fails(tmp_path: Path) -> None:
    db = tmp_path / "libs.db"
    _create(db)
    result = _create(db)
    assert result.exit_code == 1
    assert "already exists" in result.output


def test_create_without_input_fails(tmp_path: Path) -> None:
    result = runner.invoke(app, ["create", "--name", "doc", "--db", str(tmp_path / "libs.db")])
    assert result.exit_code == 1
    assert "No input text" in result.output


def test_create_missing_file_fails(tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        ["create", "--name", "doc", "--file", str(tmp_path / "nope.txt"),
         "--db", str(tmp_path / "libs.db")],
    )
    assert result.exit_code == 1
    assert "Invalid input" in result.output


def test_create_invalid_n_max_fails(tmp_path: Path) -> None:
    result = _create(tmp_path / "libs.db", "doc", _TEXT, "--n-max", "0")
    assert result.exit_code == 1
    assert "Invalid input" in result.output


def test_create_uses_config_n_max(tmp_path: Path) -> None:
    (tmp_path / "aibooks.yaml").write_text(yaml.dump({"codec": {"n_max": 3}}), encoding="utf-8")
    db = tmp_path / "libs.db"
    _create(db)
    with open_store(db) as store:
        assert store.get("doc").n_max == 3


def test_create_n_max_flag_overrides_config(tmp_path: Path) -> None:
    (tmp_path / "aibooks.yaml").write_text(yaml.dump({"codec": {"n_max": 3}}), encoding="utf-8")
    db = tmp_path / "libs.db"
    _create(db, "doc", _TEXT, "--n-max", "9")
    with open_store(db) as store:
        assert store.get("doc").n_max == 9


def test_invalid_config_fails(tmp_path: Path) -> None:
    (tmp_path / "aibooks.yaml").write_text(yaml.dump({"codec": {"n_max": 0}}), encoding="utf-8")
    result = _create(tmp_path / "libs.db")
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


# ---------------------------------------------------------------------------
# append
# ---------------------------------------------------------------------------


def test_append_adds_chunks(tmp_path: Path) -> None:
    db = tmp_path / "libs.db"
    created = json.loads(_create(db).output)

    result = runner.invoke(
        app, ["append", "--name", "doc", "--text", _TEXT, "--db", str(db), "--json"]
    )

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["chunks_added"] == created["chunks_created"]
    assert data["total_chunks"] == 2 * created["chunks_created"]


def test_append_missing_library_fails(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["append", "--name", "ghost", "--text", "x", "--db", str(tmp_path / "libs.db")]
    )
    assert result.exit_code == 1
    assert "not found" in result.output
