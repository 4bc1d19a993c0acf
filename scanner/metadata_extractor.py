"""
Metadata extraction module for images.

Extracts, per file:
- Basic file info (name, size)
- Image properties (dimensions, format), decoded with Pillow
- Creation date, from EXIF when present, else the filesystem timestamp
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from PIL import Image, UnidentifiedImageError

from catalog.models import DateSource, ImageFormat
from scanner.date_providers import (
    DEFAULT_DATE_PROVIDERS,
    DateContext,
    DateProvider,
    filesystem_timestamp,
    resolve_created_at,
)
from scanner.errors import ImageDecodeError, ImageIOError, UnsupportedFormatError

logger = logging.getLogger(__name__)


@dataclass
class ImageRecord:
    """Metadata for one successfully extracted image."""
    path: str
    file_name: str
    file_size_bytes: int
    width: int
    height: int
    format: ImageFormat
    created_at: datetime
    date_source: DateSource = DateSource.FILESYSTEM

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for database insertion."""
        return {
            "path": self.path,
            "file_name": self.file_name,
            "file_size_bytes": self.file_size_bytes,
            "width": self.width,
            "height": self.height,
            "format": self.format,
            "created_at": self.created_at,
            "date_source": self.date_source,
        }


class MetadataExtractor:
    """
    Extracts catalog metadata from image files.

    Only reads files. Either returns a complete ImageRecord or raises a
    CatalogError subclass; there are no partial records.
    """

    def __init__(
        self,
        date_providers: tuple[DateProvider, ...] | list[DateProvider] | None = None,
        verify_pixels: bool = True,
    ):
        """
        Initialize the extractor.

        Args:
            date_providers: Ordered creation-date providers. Defaults to
                           EXIF capture date, then filesystem timestamp.
            verify_pixels: Decode the full pixel data so truncated or
                          corrupt payloads are rejected, not only bad headers.
        """
        self.date_providers = date_providers or DEFAULT_DATE_PROVIDERS
        self.verify_pixels = verify_pixels

    def extract(self, filepath: str | Path) -> ImageRecord:
        """
        Extract metadata from an image file.

        Args:
            filepath: Path to the image file.

        Returns:
            ImageRecord with dimensions, format, size and creation date.

        Raises:
            ImageIOError: If the file can't be read.
            UnsupportedFormatError: If the content isn't a supported format.
            ImageDecodeError: If the image data is corrupt or truncated.
        """
        filepath = Path(filepath).resolve()

        logger.debug(f"Extracting metadata from: {filepath.name}")

        # Cheap filesystem facts first; the timestamp is the date fallback
        try:
            stats = filepath.stat()
        except OSError as e:
            raise ImageIOError(f"Cannot stat {filepath}: {e}", filepath) from e

        width, height, image_format, exif_bytes = self._read_image(filepath)

        context = DateContext(path=filepath, stat=stats, exif=exif_bytes)
        resolved = resolve_created_at(context, self.date_providers)
        if resolved is None:
            resolved = filesystem_timestamp(stats), DateSource.FILESYSTEM
        created_at, date_source = resolved

        return ImageRecord(
            path=str(filepath),
            file_name=filepath.name,
            file_size_bytes=stats.st_size,
            width=width,
            height=height,
            format=image_format,
            created_at=created_at,
            date_source=date_source,
        )

    def _read_image(
        self,
        filepath: Path
    ) -> tuple[int, int, ImageFormat, bytes | None]:
        """Open the image with Pillow and return (width, height, format, exif)."""
        try:
            with Image.open(filepath) as img:
                image_format = ImageFormat.from_pillow(img.format)
                if image_format is None:
                    raise UnsupportedFormatError(
                        f"Unsupported image format {img.format}", filepath
                    )

                width, height = img.size
                if self.verify_pixels:
                    img.load()
                exif_bytes = img.info.get("exif")

        except UnidentifiedImageError as e:
            raise UnsupportedFormatError(
                f"Not a recognized image: {filepath.name}", filepath
            ) from e
        except (FileNotFoundError, PermissionError, IsADirectoryError) as e:
            raise ImageIOError(f"Cannot open {filepath}: {e}", filepath) from e
        except Image.DecompressionBombError as e:
            raise ImageDecodeError(str(e), filepath) from e
        except (OSError, ValueError, SyntaxError, EOFError) as e:
            raise ImageDecodeError(
                f"Could not decode {filepath.name}: {e}", filepath
            ) from e

        if width <= 0 or height <= 0:
            raise ImageDecodeError(
                f"Invalid dimensions {width}x{height}", filepath
            )

        return width, height, image_format, exif_bytes


def extract_metadata(filepath: str | Path) -> ImageRecord:
    """
    Convenience function to extract metadata from an image.

    Args:
        filepath: Path to the image file.

    Returns:
        ImageRecord with extracted data.
    """
    extractor = MetadataExtractor()
    return extractor.extract(filepath)
