import sys

import catalog_images
from scanner.catalog_store import CatalogStore


def _run(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["catalog_images.py", *argv])
    return catalog_images.main()


def test_cli_catalogs_directory(tmp_path, monkeypatch, make_image, capsys):
    root = tmp_path / "photos"
    make_image(root / "a.png")
    make_image(root / "b.jpg", fmt="JPEG")
    db_path = tmp_path / "catalog.db"

    exit_code = _run(monkeypatch, str(root), "--db", str(db_path), "--stats")

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Succeeded: 2" in out
    assert "Total images: 2" in out
    with CatalogStore(db_path) as store:
        assert store.count() == 2


def test_cli_creates_missing_image_dir(tmp_path, monkeypatch):
    root = tmp_path / "new_photos"

    exit_code = _run(monkeypatch, str(root), "--db", str(tmp_path / "catalog.db"))

    assert exit_code == 0
    assert root.is_dir()


def test_cli_no_create_fails_on_missing_dir(tmp_path, monkeypatch):
    root = tmp_path / "absent"

    exit_code = _run(monkeypatch, str(root), "--db", str(tmp_path / "c.db"), "--no-create")

    assert exit_code == 1
    assert not root.exists()


def test_cli_reports_failures_with_exit_code(tmp_path, monkeypatch, make_image):
    root = tmp_path / "photos"
    make_image(root / "good.png")
    (root / "bad.png").write_text("nope")

    exit_code = _run(monkeypatch, str(root), "--db", str(tmp_path / "catalog.db"))

    assert exit_code == 1
