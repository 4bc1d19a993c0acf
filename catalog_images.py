#!/usr/bin/env python3
"""
CLI entry point for the image cataloging pipeline.

Walks an image directory, extracts metadata from every image and upserts
it into the SQLite catalog. Re-running on the same tree updates rows in
place; it never creates duplicates.

Usage:
    python catalog_images.py                       # CATALOG_IMAGE_DIR or ./images
    python catalog_images.py /path/to/photos
    python catalog_images.py /path/to/photos --db photos.db --workers 4
    python catalog_images.py /path/to/photos --stats -v
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from catalog.database import get_database_path
from scanner.catalog_store import CatalogStore
from scanner.errors import CatalogError
from scanner.processor import ImageProcessor


def setup_logging(verbose: bool = False, log_file: str | None = None) -> None:
    """Configure logging for the pipeline run."""
    level = logging.DEBUG if verbose else logging.INFO

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers
    )


def print_progress(count: int, filepath: Path) -> None:
    """Print progress to console."""
    print(f"[{count:5d}] {filepath.name}")


def print_catalog_stats(store: CatalogStore) -> None:
    """Print catalog contents grouped by format."""
    by_format = store.repository.count_by_format()
    print("\nCatalog contents:")
    print(f"  Total images: {sum(by_format.values())}")
    for image_format, total in sorted(by_format.items(), key=lambda item: item[0].value):
        print(f"  {image_format.name:>5}: {total}")


def run_catalog(args: argparse.Namespace) -> int:
    """Run the cataloging pipeline."""
    input_path = Path(args.path)

    if not input_path.exists():
        if args.no_create:
            print(f"ERROR: Path does not exist: {input_path}")
            return 1
        print(f"Creating image directory: {input_path}")
        input_path.mkdir(parents=True, exist_ok=True)

    if not input_path.is_dir():
        print(f"ERROR: Path is not a directory: {input_path}")
        return 1

    db_path = Path(args.db) if args.db else get_database_path()

    print("Catalog Configuration:")
    print(f"  Input path: {input_path}")
    print(f"  Catalog: {db_path}")
    print(f"  Workers: {args.workers}")
    print()

    with CatalogStore(db_path) as store:
        processor = ImageProcessor(
            store,
            workers=args.workers,
            progress_callback=print_progress if args.verbose else None
        )
        stats = processor.process_directory(input_path)

        print("\n" + stats.summary())

        if args.stats:
            print_catalog_stats(store)

    if stats.interrupted:
        return 130
    if stats.failed > 0:
        return 1
    return 0


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Catalog images: extract dimensions, format, size and "
                    "creation date, store them in a SQLite catalog.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  CATALOG_DB_PATH     Catalog file (default: image_catalog.db)
  CATALOG_IMAGE_DIR   Default image directory (default: ./images)
  CATALOG_WORKERS     Default extraction worker count (default: 1)

Examples:
  python catalog_images.py /path/to/photos
  python catalog_images.py /path/to/photos --workers 4 --stats
  python catalog_images.py --db archive.db --no-create /mnt/archive
        """
    )

    parser.add_argument(
        "path",
        nargs="?",
        default=os.getenv("CATALOG_IMAGE_DIR", "./images"),
        help="Directory containing images (default: CATALOG_IMAGE_DIR or ./images)"
    )
    parser.add_argument(
        "--db",
        metavar="FILE",
        help="Catalog file (default: CATALOG_DB_PATH or image_catalog.db)"
    )
    parser.add_argument(
        "-w", "--workers",
        type=int,
        default=int(os.getenv("CATALOG_WORKERS", "1")),
        help="Extraction worker threads (default: 1)"
    )
    parser.add_argument(
        "--no-create",
        action="store_true",
        help="Fail instead of creating a missing image directory"
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print catalog contents by format after the run"
    )

    # Output options
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show detailed progress output"
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to file"
    )

    args = parser.parse_args()

    if args.workers < 1:
        parser.error("--workers must be at least 1")

    setup_logging(args.verbose, args.log_file)

    try:
        return run_catalog(args)
    except KeyboardInterrupt:
        print("\n\nCataloging interrupted by user.")
        return 130
    except CatalogError as e:
        print(f"\nERROR: {e}")
        return 1
    except Exception as e:
        print(f"\nERROR: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
