import sys

import pytest
from sqlalchemy import create_engine, inspect

import init_db
from catalog import database


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "data" / "catalog.db"
    monkeypatch.setenv("CATALOG_DB_PATH", str(path))
    monkeypatch.setattr(database, "_engine", None)
    monkeypatch.setattr(database, "_session_factory", None)
    return path


def _run(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["init_db.py", *argv])
    return init_db.main()


def test_creates_catalog_tables(db_path, monkeypatch, capsys):
    _run(monkeypatch)

    assert db_path.exists()
    engine = create_engine(f"sqlite:///{db_path}")
    assert "images" in inspect(engine).get_table_names()
    engine.dispose()
    assert "Catalog initialization complete!" in capsys.readouterr().out
    assert database._engine is None


def test_check_only_fails_on_missing_catalog(db_path, monkeypatch):
    with pytest.raises(SystemExit) as exc_info:
        _run(monkeypatch, "--check-only")

    assert exc_info.value.code == 1
    # Checking must not create the file
    assert not db_path.exists()


def test_check_only_passes_after_init(db_path, monkeypatch, capsys):
    _run(monkeypatch)

    with pytest.raises(SystemExit) as exc_info:
        _run(monkeypatch, "--check-only", "--verbose")

    assert exc_info.value.code == 0
    out = capsys.readouterr().out
    assert "Catalog OK" in out
    assert str(db_path.resolve()) in out
