"""
Storage layer for the image catalog.

This module provides database connectivity, models, and operations
for storing and querying image metadata.
"""

from catalog.database import (
    create_catalog_engine,
    create_schema,
    get_engine,
    get_session,
    init_db,
    session_scope,
)
from catalog.models import DateSource, Image, ImageFormat
from catalog.operations import ImageRepository

__all__ = [
    "create_catalog_engine",
    "create_schema",
    "get_engine",
    "get_session",
    "init_db",
    "session_scope",
    "DateSource",
    "Image",
    "ImageFormat",
    "ImageRepository",
]
