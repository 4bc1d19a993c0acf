import os
from datetime import datetime

import pytest
from PIL import Image as PILImage

from catalog.models import DateSource, ImageFormat
from conftest import exif_with_dates, write_truncated_png
from scanner.date_providers import FilesystemDateProvider, filesystem_timestamp
from scanner.errors import ImageDecodeError, ImageIOError, UnsupportedFormatError
from scanner.metadata_extractor import MetadataExtractor, extract_metadata


def test_png_dimensions_and_format(tmp_path, make_image):
    path = make_image(tmp_path / "wide.png", (100, 50), "PNG")

    record = MetadataExtractor().extract(path)

    assert record.width == 100
    assert record.height == 50
    assert record.format is ImageFormat.PNG
    assert record.file_name == "wide.png"
    assert record.path == str(path.resolve())
    assert record.file_size_bytes == path.stat().st_size


@pytest.mark.parametrize("fmt, suffix, expected", [
    ("JPEG", ".jpg", ImageFormat.JPEG),
    ("GIF", ".gif", ImageFormat.GIF),
    ("BMP", ".bmp", ImageFormat.BMP),
    ("WEBP", ".webp", ImageFormat.WEBP),
])
def test_other_supported_formats(tmp_path, make_image, fmt, suffix, expected):
    path = make_image(tmp_path / f"img{suffix}", (32, 16), fmt)

    record = extract_metadata(path)

    assert (record.width, record.height, record.format) == (32, 16, expected)


def test_fallback_date_is_filesystem_timestamp(tmp_path, make_image):
    path = make_image(tmp_path / "plain.png")
    os.utime(path, (1_500_000_000, 1_500_000_000))

    record = MetadataExtractor().extract(path)

    assert record.created_at == filesystem_timestamp(path.stat())
    assert record.date_source is DateSource.FILESYSTEM


def test_exif_capture_date_wins_over_filesystem(tmp_path, make_image):
    exif = exif_with_dates(original=b"2019:07:04 12:30:00")
    path = make_image(tmp_path / "camera.jpg", (40, 30), "JPEG", exif=exif)

    record = MetadataExtractor().extract(path)

    assert record.created_at == datetime(2019, 7, 4, 12, 30)
    assert record.date_source is DateSource.EXIF


def test_bad_exif_date_falls_back_silently(tmp_path, make_image):
    exif = exif_with_dates(original=b"not a date at all!!")
    path = make_image(tmp_path / "camera.jpg", (40, 30), "JPEG", exif=exif)

    record = MetadataExtractor().extract(path)

    assert record.created_at == filesystem_timestamp(path.stat())
    assert record.date_source is DateSource.FILESYSTEM


def test_custom_provider_chain_skips_exif(tmp_path, make_image):
    exif = exif_with_dates(original=b"2019:07:04 12:30:00")
    path = make_image(tmp_path / "camera.jpg", (40, 30), "JPEG", exif=exif)

    extractor = MetadataExtractor(date_providers=[FilesystemDateProvider()])
    record = extractor.extract(path)

    assert record.date_source is DateSource.FILESYSTEM


def test_text_content_is_unsupported(tmp_path):
    path = tmp_path / "fake.jpg"
    path.write_text("definitely not a jpeg")

    with pytest.raises(UnsupportedFormatError) as exc_info:
        MetadataExtractor().extract(path)

    assert exc_info.value.kind == "unsupported_format"


def test_recognized_but_unsupported_container(tmp_path):
    path = tmp_path / "actually_tiff.jpg"
    PILImage.new("RGB", (8, 8)).save(path, "TIFF")

    with pytest.raises(UnsupportedFormatError):
        MetadataExtractor().extract(path)


def test_truncated_image_is_decode_error(tmp_path):
    path = write_truncated_png(tmp_path / "cut.png")

    with pytest.raises(ImageDecodeError) as exc_info:
        MetadataExtractor().extract(path)

    assert exc_info.value.kind == "decode"
    assert exc_info.value.path == path.resolve()


def test_truncated_image_passes_header_only_mode(tmp_path):
    path = write_truncated_png(tmp_path / "cut.png")

    record = MetadataExtractor(verify_pixels=False).extract(path)

    assert (record.width, record.height) == (200, 200)


def test_missing_file_is_io_error(tmp_path):
    with pytest.raises(ImageIOError):
        MetadataExtractor().extract(tmp_path / "gone.png")


def test_record_to_dict_matches_columns(tmp_path, make_image):
    record = MetadataExtractor().extract(make_image(tmp_path / "a.png"))

    assert set(record.to_dict()) == {
        "path", "file_name", "file_size_bytes", "width", "height",
        "format", "created_at", "date_source",
    }
