"""
Catalog store for the pipeline.

Owns the SQLite engine for one pipeline run and provides:
- Idempotent schema creation
- Path-keyed upsert of extracted records, one transaction per record
- Scoped lifecycle (context manager) so the store is always closed
"""

import logging
from pathlib import Path

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from catalog.database import (
    create_catalog_engine,
    create_schema,
    create_session_factory,
    get_database_path,
)
from catalog.models import Image
from catalog.operations import ImageRepository
from scanner.errors import StorageError
from scanner.metadata_extractor import ImageRecord

logger = logging.getLogger(__name__)


class CatalogStore:
    """
    Handle on the catalog file for a single run.

    Not thread-safe: all writes must come from the thread that owns the
    store.

    Example:
        with CatalogStore("catalog.db") as store:
            store.upsert(record)
    """

    def __init__(self, db_path: str | Path | None = None):
        """
        Initialize the store.

        Args:
            db_path: Catalog file. Defaults to CATALOG_DB_PATH.
        """
        self.db_path = Path(db_path) if db_path is not None else get_database_path()
        self._engine: Engine | None = create_catalog_engine(self.db_path)
        self._session_factory: sessionmaker | None = create_session_factory(self._engine)
        self.repository = ImageRepository(session_factory=self._session_factory)

    def __enter__(self) -> "CatalogStore":
        try:
            self.initialize()
        except StorageError:
            self.close()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._engine is None

    def _require_open(self) -> None:
        if self.closed:
            raise StorageError(f"Catalog store is closed: {self.db_path}", self.db_path)

    def initialize(self) -> None:
        """
        Create the catalog schema if absent.

        Raises:
            StorageError: If the catalog file can't be created or opened.
        """
        self._require_open()
        try:
            create_schema(self._engine)
        except (SQLAlchemyError, OSError) as e:
            raise StorageError(
                f"Could not initialize catalog {self.db_path}: {e}", self.db_path
            ) from e
        logger.info(f"Catalog ready at {self.db_path}")

    def upsert(self, record: ImageRecord) -> int:
        """
        Insert a record or overwrite the row with the same path.

        Args:
            record: Extracted image metadata.

        Returns:
            ID of the stored row.

        Raises:
            StorageError: If the write fails; nothing is written.
        """
        self._require_open()
        try:
            image_id = self.repository.upsert(**record.to_dict())
        except SQLAlchemyError as e:
            raise StorageError(
                f"Could not store {record.path}: {e}", record.path
            ) from e

        logger.debug(f"Stored image ID {image_id}: {record.file_name}")
        return image_id

    def get(self, path: str | Path) -> Image | None:
        """
        Get the stored row for a path.

        Args:
            path: Path to the image file.

        Returns:
            Image instance or None if not cataloged.
        """
        self._require_open()
        return self.repository.get_by_path(str(Path(path).resolve()))

    def count(self) -> int:
        """Number of cataloged images."""
        self._require_open()
        return self.repository.count()

    def close(self) -> None:
        """Release the catalog file. Safe to call more than once."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.debug(f"Catalog closed: {self.db_path}")
