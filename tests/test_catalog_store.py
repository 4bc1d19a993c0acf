from datetime import datetime
from pathlib import Path

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError

from catalog.models import DateSource, ImageFormat
from scanner.catalog_store import CatalogStore
from scanner.errors import StorageError
from scanner.metadata_extractor import ImageRecord


def _record(path="/photos/a.png", width=100, height=50, **overrides):
    values = dict(
        path=path,
        file_name=Path(path).name,
        file_size_bytes=1234,
        width=width,
        height=height,
        format=ImageFormat.PNG,
        created_at=datetime(2020, 5, 17, 10, 0, 0),
        date_source=DateSource.FILESYSTEM,
    )
    values.update(overrides)
    return ImageRecord(**values)


def test_initialize_is_idempotent(tmp_path):
    store = CatalogStore(tmp_path / "catalog.db")
    try:
        store.initialize()
        store.upsert(_record())
        store.initialize()

        assert store.count() == 1
    finally:
        store.close()


def test_initialize_creates_parent_directory(tmp_path):
    db_path = tmp_path / "nested" / "dir" / "catalog.db"

    with CatalogStore(db_path) as store:
        assert db_path.exists()
        assert store.count() == 0


def test_schema_has_unique_path(store):
    inspector = inspect(store._engine)
    columns = {c["name"] for c in inspector.get_columns("images")}

    assert {"path", "file_name", "file_size_bytes", "width", "height",
            "format", "created_at", "date_source"} <= columns
    unique_columns = [u["column_names"] for u in inspector.get_unique_constraints("images")]
    unique_indexes = [i["column_names"] for i in inspector.get_indexes("images") if i["unique"]]
    assert ["path"] in unique_columns + unique_indexes


def test_upsert_inserts_new_row(store):
    image_id = store.upsert(_record())

    row = store.get("/photos/a.png")
    assert row.id == image_id
    assert (row.width, row.height, row.format) == (100, 50, ImageFormat.PNG)
    assert row.created_at == datetime(2020, 5, 17, 10, 0, 0)
    assert row.cataloged_at is not None


def test_upsert_same_path_overwrites(store):
    first_id = store.upsert(_record())
    second_id = store.upsert(_record(
        width=300, height=200, format=ImageFormat.JPEG,
        created_at=datetime(2021, 1, 1), date_source=DateSource.EXIF,
    ))

    assert first_id == second_id
    assert store.count() == 1
    row = store.get("/photos/a.png")
    assert (row.width, row.height, row.format) == (300, 200, ImageFormat.JPEG)
    assert row.date_source is DateSource.EXIF


def test_distinct_paths_get_distinct_rows(store):
    store.upsert(_record("/photos/a.png"))
    store.upsert(_record("/photos/b.png"))

    assert store.count() == 2


def test_write_failure_raises_storage_error(store, monkeypatch):
    def broken_upsert(**kwargs):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(store.repository, "upsert", broken_upsert)

    with pytest.raises(StorageError) as exc_info:
        store.upsert(_record())

    assert exc_info.value.kind == "storage"
    assert exc_info.value.path == Path("/photos/a.png")


def test_closed_store_rejects_writes(tmp_path):
    with CatalogStore(tmp_path / "catalog.db") as store:
        store.upsert(_record())

    assert store.closed
    with pytest.raises(StorageError):
        store.upsert(_record())
    store.close()


def test_data_survives_reopen(tmp_path):
    db_path = tmp_path / "catalog.db"
    with CatalogStore(db_path) as store:
        store.upsert(_record())

    with CatalogStore(db_path) as store:
        assert store.count() == 1
        assert store.get("/photos/a.png").file_name == "a.png"


def test_unopenable_catalog_raises_storage_error(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("")

    with pytest.raises(StorageError):
        with CatalogStore(blocker / "catalog.db"):
            pass


def test_bookkeeping_timestamps_are_local_time(store):
    before = datetime.now()
    store.upsert(_record())
    after = datetime.now()

    row = store.get("/photos/a.png")
    assert before <= row.cataloged_at <= after
    assert before <= row.updated_at <= after

    store.upsert(_record(width=200))
    again = store.get("/photos/a.png")

    assert again.cataloged_at == row.cataloged_at
    assert row.updated_at <= again.updated_at <= datetime.now()
