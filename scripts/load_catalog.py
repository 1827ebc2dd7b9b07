#!/usr/bin/env python3
import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from config import settings
from models import SessionLocal, init_db
from services.catalog_loader import DEFAULT_BATCH_SIZE, load_catalog_csv


def print_progress(message: str):
    print(message)


def main():
    parser = argparse.ArgumentParser(description="Load the medicine catalog CSV into the database")
    parser.add_argument(
        "csv_path",
        nargs="?",
        default=settings.catalog_csv_path,
        help=f"Path to the catalog CSV (default: {settings.catalog_csv_path})",
    )
    parser.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE)
    parser.add_argument(
        "--force",
        action="store_true",
        help="Replace existing medicines instead of skipping a populated catalog",
    )
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level.upper())

    print("Starting catalog load...")
    init_db()

    db = SessionLocal()
    try:
        result = load_catalog_csv(
            db,
            args.csv_path,
            batch_size=args.batch_size,
            force=args.force,
            progress_callback=print_progress,
        )
    except FileNotFoundError as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()

    if result.already_populated:
        print("Catalog already loaded. Use --force to reload.")
        return

    print(f"\nLoaded {result.loaded} medicines ({result.skipped_rows} rows skipped)")
    print(f"Full-text index entries: {result.indexed}")


if __name__ == "__main__":
    main()
