#!/usr/bin/env python3
"""
Backfill v2 fields (weights, English names, skill dimensions) into the stored
evaluation structures.

Usage:
    python migrate_evaluation_structures.py            # migrate in place
    python migrate_evaluation_structures.py --dry-run  # report only
"""

import argparse
import asyncio
import logging
import sys

from src.api.migration_service import migrate_evaluation_structures
from src.api.sqlite_service import SQLiteService


def main() -> int:
    parser = argparse.ArgumentParser(description="Migrate evaluation structures to version 2.0")
    parser.add_argument("--dry-run", action="store_true", help="report changes without writing them")
    parser.add_argument("--db", default=None, help="SQLite database path (defaults to SQLITE_DB_PATH)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s: %(message)s")
    summary = asyncio.run(migrate_evaluation_structures(SQLiteService(args.db), dry_run=args.dry_run))

    print(f"Total structures:  {summary['total']}")
    print(f"Updated:           {summary['updated']}")
    print(f"Skipped:           {summary['skipped']}")
    print(f"Errors:            {summary['errors']}")
    return 1 if summary["errors"] else 0


if __name__ == "__main__":
    sys.exit(main())
