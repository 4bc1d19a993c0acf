"""
Database operations for the image catalog.

Provides ImageRepository class with methods for:
- Upserting image records keyed by path
- Reading/querying images
- Counting and grouping for catalog statistics
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Generator

from sqlalchemy import func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, sessionmaker

from catalog.database import session_scope
from catalog.models import DateSource, Image, ImageFormat

logger = logging.getLogger(__name__)

# Columns overwritten when a path is scanned again
UPSERT_COLUMNS = (
    "file_name",
    "file_size_bytes",
    "width",
    "height",
    "format",
    "created_at",
    "date_source",
)


class ImageRepository:
    """
    Repository for Image database operations.

    Can be used with a provided session, a session factory, or neither
    (operations then use the process-wide session_scope()).
    """

    def __init__(
        self,
        session: Session | None = None,
        session_factory: sessionmaker | None = None,
    ):
        """
        Initialize repository.

        Args:
            session: SQLAlchemy session to run every operation in.
                    The caller owns commit/rollback.
            session_factory: Factory for per-operation sessions when no
                    session is given.
        """
        self._session = session
        self._session_factory = session_factory

    @contextmanager
    def _scope(self) -> Generator[Session, None, None]:
        if self._session is not None:
            yield self._session
            return
        with session_scope(self._session_factory) as session:
            yield session

    # ────────────────────────────────────────────────────────────────────────────
    # Write Operations
    # ────────────────────────────────────────────────────────────────────────────

    def upsert(
        self,
        path: str,
        file_name: str,
        file_size_bytes: int,
        width: int,
        height: int,
        format: ImageFormat,
        created_at: datetime,
        date_source: DateSource = DateSource.FILESYSTEM,
    ) -> int:
        """
        Insert an image record, or overwrite the one sharing its path.

        Args:
            path: Absolute path to the image file (unique key).
            file_name: Base name of the file.
            file_size_bytes: Size in bytes.
            width: Image width in pixels.
            height: Image height in pixels.
            format: Image format.
            created_at: Capture or filesystem creation date.
            date_source: Where created_at came from.

        Returns:
            ID of the inserted or updated row.
        """
        values = {
            "path": path,
            "file_name": file_name,
            "file_size_bytes": file_size_bytes,
            "width": width,
            "height": height,
            "format": format,
            "created_at": created_at,
            "date_source": date_source,
        }

        stmt = sqlite_insert(Image).values(**values)
        update_values = {column: stmt.excluded[column] for column in UPSERT_COLUMNS}
        # ON CONFLICT DO UPDATE ignores Column.onupdate
        update_values["updated_at"] = datetime.now()
        stmt = stmt.on_conflict_do_update(
            index_elements=[Image.path],
            set_=update_values,
        )

        with self._scope() as session:
            session.execute(stmt)
            image_id = session.execute(
                select(Image.id).where(Image.path == path)
            ).scalar_one()

        logger.debug(f"Upserted image record {image_id}: {path}")
        return image_id

    # ────────────────────────────────────────────────────────────────────────────
    # Read Operations
    # ────────────────────────────────────────────────────────────────────────────

    def get_by_id(self, image_id: int) -> Image | None:
        """
        Get image by ID.

        Args:
            image_id: Primary key of the image.

        Returns:
            Image instance or None if not found.
        """
        with self._scope() as session:
            return session.get(Image, image_id)

    def get_by_path(self, path: str) -> Image | None:
        """
        Get image by path.

        Args:
            path: Absolute path to the image file.

        Returns:
            Image instance or None if not found.
        """
        stmt = select(Image).where(Image.path == path)

        with self._scope() as session:
            return session.execute(stmt).scalar_one_or_none()

    def exists_by_path(self, path: str) -> bool:
        """Check if an image with the given path is cataloged."""
        return self.get_by_path(path) is not None

    def get_all(
        self,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[Image]:
        """
        Get all images, newest creation date first.

        Args:
            limit: Maximum number of images to return.
            offset: Number of images to skip.

        Returns:
            List of Image instances.
        """
        stmt = select(Image).order_by(Image.created_at.desc(), Image.id)

        if offset:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)

        with self._scope() as session:
            return list(session.execute(stmt).scalars().all())

    def get_by_format(self, format: ImageFormat) -> list[Image]:
        """Get all images stored in the given format."""
        stmt = select(Image).where(Image.format == format).order_by(Image.path)

        with self._scope() as session:
            return list(session.execute(stmt).scalars().all())

    def get_created_between(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Image]:
        """
        Get images whose creation date falls in a range.

        Args:
            start: Inclusive lower bound, open if None.
            end: Exclusive upper bound, open if None.

        Returns:
            List of Image instances ordered by creation date.
        """
        stmt = select(Image).order_by(Image.created_at)

        if start is not None:
            stmt = stmt.where(Image.created_at >= start)
        if end is not None:
            stmt = stmt.where(Image.created_at < end)

        with self._scope() as session:
            return list(session.execute(stmt).scalars().all())

    def count(self, format: ImageFormat | None = None) -> int:
        """
        Count images, optionally filtered by format.

        Args:
            format: Filter by image format.

        Returns:
            Number of images.
        """
        stmt = select(func.count(Image.id))

        if format:
            stmt = stmt.where(Image.format == format)

        with self._scope() as session:
            return session.execute(stmt).scalar() or 0

    def count_by_format(self) -> dict[ImageFormat, int]:
        """
        Count images grouped by format.

        Returns:
            Mapping of format to number of images; formats with no
            images are omitted.
        """
        stmt = select(Image.format, func.count(Image.id)).group_by(Image.format)

        with self._scope() as session:
            return {fmt: total for fmt, total in session.execute(stmt).all()}
