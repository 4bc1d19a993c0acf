import os
from pathlib import Path

import piexif
import pytest
from PIL import Image as PILImage

from scanner.catalog_store import CatalogStore


def write_image(
    path: Path,
    size: tuple[int, int] = (100, 50),
    fmt: str = "PNG",
    exif: bytes | None = None,
) -> Path:
    """Write a solid-colour image, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    img = PILImage.new("RGB", size, color=(200, 30, 30))
    kwargs = {"exif": exif} if exif else {}
    img.save(path, fmt, **kwargs)
    return path


def exif_with_dates(original: bytes | None = None, digitized: bytes | None = None) -> bytes:
    exif_ifd = {}
    if original is not None:
        exif_ifd[piexif.ExifIFD.DateTimeOriginal] = original
    if digitized is not None:
        exif_ifd[piexif.ExifIFD.DateTimeDigitized] = digitized
    return piexif.dump({"0th": {piexif.ImageIFD.Make: b"TestCam"}, "Exif": exif_ifd})


def write_truncated_png(path: Path) -> Path:
    """Write a PNG whose header is valid but whose pixel data is cut short."""
    path.parent.mkdir(parents=True, exist_ok=True)
    noise = PILImage.frombytes("RGB", (200, 200), os.urandom(200 * 200 * 3))
    noise.save(path, "PNG")
    data = path.read_bytes()
    path.write_bytes(data[: len(data) // 2])
    return path


@pytest.fixture
def make_image():
    return write_image


@pytest.fixture
def image_tree(tmp_path):
    """Three valid images, two broken ones and a text file."""
    root = tmp_path / "photos"
    write_image(root / "a.png", (100, 50))
    write_image(root / "nested" / "b.jpg", (64, 48), "JPEG")
    write_image(root / "nested" / "deeper" / "c.GIF", (10, 20), "GIF")
    (root / "nested" / "not_really.jpg").write_text("this is not an image")
    write_truncated_png(root / "broken.png")
    (root / "notes.txt").write_text("holiday notes")
    return root


@pytest.fixture
def store(tmp_path):
    with CatalogStore(tmp_path / "catalog.db") as catalog_store:
        yield catalog_store
