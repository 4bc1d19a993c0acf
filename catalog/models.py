"""
SQLAlchemy models for the image catalog.

Database Schema:
----------------
images table:
    - id: Primary key, auto-increment
    - path: Absolute path to the image file (unique, the upsert key)
    - file_name: Base name of the file
    - file_size_bytes: Size in bytes at scan time
    - width: Image width in pixels
    - height: Image height in pixels
    - format: Image format (JPEG, PNG, GIF, BMP, WEBP)
    - created_at: Capture date from EXIF, or the filesystem timestamp
    - date_source: Which source produced created_at (exif, filesystem)
    - cataloged_at: Timestamp when the row was first written
    - updated_at: Timestamp when the row was last overwritten
"""

from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    BigInteger,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class ImageFormat(PyEnum):
    """Image container formats the catalog accepts."""
    JPEG = "jpeg"
    PNG = "png"
    GIF = "gif"
    BMP = "bmp"
    WEBP = "webp"

    @classmethod
    def from_pillow(cls, name: str | None) -> "ImageFormat | None":
        """Map a Pillow format name (``Image.format``) to a catalog format."""
        if not name:
            return None
        name = name.upper()
        # Multi-picture JPEGs are reported separately by Pillow
        if name == "MPO":
            return cls.JPEG
        return cls.__members__.get(name)


class DateSource(PyEnum):
    """Where an image's creation date came from."""
    EXIF = "exif"
    FILESYSTEM = "filesystem"


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class Image(Base):
    """
    SQLAlchemy model for the images table.

    One row per cataloged file, keyed by its path.
    """
    __tablename__ = "images"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # File information
    path: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # Image properties
    width: Mapped[int] = mapped_column(Integer, nullable=False)
    height: Mapped[int] = mapped_column(Integer, nullable=False)
    format: Mapped[ImageFormat] = mapped_column(
        Enum(ImageFormat, name="image_format_enum"),
        nullable=False
    )

    # Creation date (EXIF capture date or filesystem fallback)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    date_source: Mapped[DateSource] = mapped_column(
        Enum(DateSource, name="date_source_enum"),
        nullable=False,
        default=DateSource.FILESYSTEM
    )

    # Bookkeeping, in local time like created_at
    cataloged_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.now,
        onupdate=datetime.now
    )

    __table_args__ = (
        Index("idx_images_file_name", "file_name"),
        Index("idx_images_format", "format"),
        Index("idx_images_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Image(id={self.id}, path='{self.path}', "
            f"{self.width}x{self.height} {self.format.value})>"
        )

    def to_dict(self) -> dict:
        """Convert model to dictionary for serialization."""
        return {
            "id": self.id,
            "path": self.path,
            "file_name": self.file_name,
            "file_size_bytes": self.file_size_bytes,
            "width": self.width,
            "height": self.height,
            "format": self.format.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "date_source": self.date_source.value,
            "cataloged_at": self.cataloged_at.isoformat() if self.cataloged_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
