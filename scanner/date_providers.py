"""
Creation-date providers for image records.

Each provider looks at one source of date information and returns a
datetime or None. resolve_created_at() runs an ordered chain of providers
and takes the first date found:

1. EXIF capture date (DateTimeOriginal, then DateTimeDigitized)
2. Filesystem timestamp (birth time where available, else mtime)
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import piexif

from catalog.models import DateSource

logger = logging.getLogger(__name__)

# EXIF format: "YYYY:MM:DD HH:MM:SS"
EXIF_DATE_FORMATS = ("%Y:%m:%d %H:%M:%S", "%Y-%m-%d %H:%M:%S")


@dataclass
class DateContext:
    """What a provider can look at for one file."""
    path: Path
    stat: os.stat_result
    exif: bytes | None = None


class DateProvider(ABC):
    """A single source of creation dates."""
    source: DateSource

    @abstractmethod
    def provide(self, context: DateContext) -> datetime | None:
        """Return a creation date, or None if this source has none."""


class ExifDateProvider(DateProvider):
    """Reads the capture date from an embedded EXIF block."""
    source = DateSource.EXIF

    def __init__(self, tags: tuple[int, ...] | None = None):
        """
        Args:
            tags: Exif IFD tags to try, in order. Defaults to
                  DateTimeOriginal then DateTimeDigitized.
        """
        self.tags = tags or (
            piexif.ExifIFD.DateTimeOriginal,
            piexif.ExifIFD.DateTimeDigitized,
        )

    def provide(self, context: DateContext) -> datetime | None:
        if not context.exif:
            return None

        try:
            exif_dict = piexif.load(context.exif)
        except Exception as e:
            logger.debug(f"Could not parse EXIF from {context.path.name}: {e}")
            return None

        exif_ifd = exif_dict.get("Exif", {})
        for tag in self.tags:
            date_str = decode_exif_string(exif_ifd.get(tag))
            if date_str:
                parsed = parse_exif_date(date_str)
                if parsed:
                    return parsed
        return None


class FilesystemDateProvider(DateProvider):
    """Falls back to the file's own timestamp."""
    source = DateSource.FILESYSTEM

    def provide(self, context: DateContext) -> datetime | None:
        return filesystem_timestamp(context.stat)


DEFAULT_DATE_PROVIDERS: tuple[DateProvider, ...] = (
    ExifDateProvider(),
    FilesystemDateProvider(),
)


def resolve_created_at(
    context: DateContext,
    providers: tuple[DateProvider, ...] | list[DateProvider] = DEFAULT_DATE_PROVIDERS,
) -> tuple[datetime, DateSource] | None:
    """
    Run providers in order and return the first date found.

    Args:
        context: File information handed to every provider.
        providers: Ordered providers to consult.

    Returns:
        (date, source) of the first provider with a value, or None if
        none had one.
    """
    for provider in providers:
        value = provider.provide(context)
        if value is not None:
            return value, provider.source
    return None


def filesystem_timestamp(stat: os.stat_result) -> datetime:
    """Creation time where the platform reports one, otherwise mtime."""
    birthtime = getattr(stat, "st_birthtime", None)
    if birthtime:
        return datetime.fromtimestamp(birthtime)
    return datetime.fromtimestamp(stat.st_mtime)


def decode_exif_string(value: bytes | str | None) -> str | None:
    """Decode EXIF string value."""
    if value is None:
        return None
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8").strip().rstrip("\x00")
        except UnicodeDecodeError:
            return value.decode("latin-1").strip().rstrip("\x00")
    return str(value).strip()


def parse_exif_date(date_str: str) -> datetime | None:
    """Parse EXIF date string to datetime."""
    for fmt in EXIF_DATE_FORMATS:
        try:
            return datetime.strptime(date_str, fmt)
        except ValueError:
            continue
    logger.debug(f"Could not parse date: {date_str}")
    return None
