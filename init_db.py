#!/usr/bin/env python3
"""
Catalog initialization script.

This script:
1. Creates the catalog file and its tables (if absent)
2. Verifies the catalog can be queried
3. Optionally displays configuration for debugging

Usage:
    python init_db.py [--verbose] [--check-only]
"""

import argparse
import logging
import sys

from catalog.database import (
    dispose_engine,
    get_database_path,
    get_db_info,
    init_db,
    verify_connection,
)
from catalog.models import ImageFormat

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def main():
    """Initialize the catalog."""
    parser = argparse.ArgumentParser(
        description="Initialize the image catalog database"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show detailed output including configuration"
    )
    parser.add_argument(
        "--check-only",
        action="store_true",
        help="Only verify an existing catalog, don't create tables"
    )
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    print("=" * 60)
    print("Image Catalog - Database Initialization")
    print("=" * 60)
    print()

    if args.verbose:
        print("Configuration:")
        for key, value in get_db_info().items():
            print(f"  {key}: {value}")
        print()

    db_path = get_database_path()

    if args.check_only:
        print(f"Checking catalog at {db_path}...")
        # Connecting would create an empty file, so check first
        if not db_path.exists() or not verify_connection():
            print("ERROR: Catalog is missing or unreadable!")
            dispose_engine()
            sys.exit(1)
        print("  -> Catalog OK")
        dispose_engine()
        sys.exit(0)

    print(f"[1/2] Creating catalog tables in {db_path}...")
    if not init_db():
        print()
        print("ERROR: Failed to create tables!")
        print("Check the logs above for details.")
        dispose_engine()
        sys.exit(1)

    print("  -> Tables created successfully!")
    print()

    print("[2/2] Verifying catalog...")
    if not verify_connection():
        print("ERROR: Could not open the catalog after creating it!")
        dispose_engine()
        sys.exit(1)

    print("  -> Catalog OK")
    print()

    print("=" * 60)
    print("Catalog initialization complete!")
    print("=" * 60)
    print()
    print("Tables created:")
    print("  - images (unique path, indexes on file_name, format, created_at)")
    print()
    print("Supported formats:")
    for image_format in ImageFormat:
        print(f"  - {image_format.name}")
    print()
    print("Next steps:")
    print("  1. Run: python catalog_images.py /path/to/photos")
    print()

    dispose_engine()


if __name__ == "__main__":
    main()
