"""
Image cataloging pipeline.

This module provides the pipeline for:
- Walking directories for image files
- Extracting dimensions, format, size and creation date
- Storing results in the SQLite catalog
"""

from scanner.catalog_store import CatalogStore
from scanner.errors import (
    CatalogError,
    ImageDecodeError,
    ImageIOError,
    StorageError,
    UnsupportedFormatError,
)
from scanner.file_walker import FileWalker, walk_directory
from scanner.metadata_extractor import ImageRecord, MetadataExtractor
from scanner.processor import ImageProcessor, PipelineStats, catalog_directory

__all__ = [
    "CatalogStore",
    "CatalogError",
    "ImageDecodeError",
    "ImageIOError",
    "StorageError",
    "UnsupportedFormatError",
    "FileWalker",
    "walk_directory",
    "ImageRecord",
    "MetadataExtractor",
    "ImageProcessor",
    "PipelineStats",
    "catalog_directory",
]
