"""
File walker module for discovering images in directories.

Provides lazy recursive directory traversal with filtering for image files.
"""

import logging
import os
from pathlib import Path
from typing import Iterator

from scanner.errors import ImageIOError

logger = logging.getLogger(__name__)

# Supported image extensions
IMAGE_EXTENSIONS = {
    ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp"
}


class FileWalker:
    """
    Walker for discovering image files under a root directory.

    Symlinks are not followed: linked directories are not descended into
    and linked files are not yielded. Paths are yielded in
    filesystem traversal order.

    Attributes:
        extensions: Set of lower-case file extensions to include.
    """

    def __init__(self, extensions: set[str] | None = None):
        """
        Initialize the file walker.

        Args:
            extensions: Set of file extensions to walk for, with leading
                       dot. Defaults to IMAGE_EXTENSIONS.
        """
        self.extensions = {
            ext.lower() for ext in (extensions or IMAGE_EXTENSIONS)
        }

    def walk(self, root: str | Path) -> Iterator[Path]:
        """
        Walk a directory tree for image files.

        The root is checked before this returns; the tree itself is read
        lazily as the iterator is consumed. Each call starts a new walk.

        Args:
            root: Directory to walk.

        Returns:
            Iterator over paths of matching files.

        Raises:
            ImageIOError: If root doesn't exist, isn't a directory, or
                can't be listed.
        """
        root = Path(root)

        if not root.exists():
            raise ImageIOError(f"Directory does not exist: {root}", root)

        if not root.is_dir():
            raise ImageIOError(f"Path is not a directory: {root}", root)

        try:
            with os.scandir(root):
                pass
        except OSError as e:
            raise ImageIOError(f"Cannot read directory {root}: {e}", root) from e

        return self._walk_iter(root)

    def _walk_iter(self, root: Path) -> Iterator[Path]:
        """
        Iterate over image files under root.

        Args:
            root: Directory already known to be readable.

        Yields:
            Paths to image files.
        """
        for dirpath, _dirnames, filenames in os.walk(
            root, onerror=self._on_error, followlinks=False
        ):
            for name in filenames:
                path = Path(dirpath) / name
                if self._is_image(path):
                    yield path

    def _on_error(self, error: OSError) -> None:
        logger.warning(f"Skipping unreadable entry {error.filename}: {error.strerror}")

    def _is_image(self, path: Path) -> bool:
        """
        Check if path looks like an image file by extension.

        Args:
            path: Path to check.

        Returns:
            True if path is a regular, non-symlinked file with a
            supported extension.
        """
        if path.suffix.lower() not in self.extensions:
            return False
        try:
            if path.is_symlink():
                return False
            return path.is_file()
        except OSError as e:
            logger.warning(f"Skipping unreadable entry {path}: {e}")
            return False

    def count(self, root: str | Path) -> int:
        """
        Count image files under root without keeping their paths.

        Args:
            root: Directory to walk.

        Returns:
            Number of image files found.
        """
        return sum(1 for _ in self.walk(root))


def walk_directory(
    root: str | Path,
    extensions: set[str] | None = None
) -> Iterator[Path]:
    """
    Convenience function to walk a directory for images.

    Args:
        root: Directory to walk.
        extensions: Set of file extensions to include.

    Returns:
        Iterator over paths of image files.
    """
    walker = FileWalker(extensions=extensions)
    return walker.walk(root)
