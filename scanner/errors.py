"""
Exceptions raised while cataloging images.

Every error carries the offending path and a short ``kind`` label used
in run summaries and logs.
"""

from pathlib import Path


class CatalogError(Exception):
    """Base exception for catalog pipeline errors."""
    kind = "error"

    def __init__(self, message: str, path: str | Path | None = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class ImageIOError(CatalogError):
    """File or scan root could not be read."""
    kind = "io"


class ImageDecodeError(CatalogError):
    """Image content is corrupt, truncated or uses an undecodable encoding."""
    kind = "decode"


class UnsupportedFormatError(CatalogError):
    """Extension matched but the content is not a supported image format."""
    kind = "unsupported_format"


class StorageError(CatalogError):
    """Record could not be written to the catalog store."""
    kind = "storage"
