#!/usr/bin/env python3
"""
Employee Master-Data Import
Loads employee rows from a JSON or CSV export into the employees collection.
"""

import argparse
import asyncio
import sys

from empbot.core.employees import import_employees, load_employee_rows
from empbot.core.store import DocumentStore


def main(argv=None):
    parser = argparse.ArgumentParser(description="Import employee master data")
    parser.add_argument("path", help="JSON or CSV file with employee rows")
    parser.add_argument("--db-path", help="SQLite database path (defaults to DB_PATH)")
    parser.add_argument("--project-id", help="Store project id (defaults to STORE_PROJECT_ID)")
    args = parser.parse_args(argv)

    try:
        rows = load_employee_rows(args.path)
    except (OSError, ValueError) as e:
        print(f"ERROR: Cannot read {args.path}: {e}")
        return 1

    store = DocumentStore(db_path=args.db_path, project_id=args.project_id)
    result = asyncio.run(import_employees(store, rows))

    print(f"Imported: {result['imported']}")
    print(f"Skipped (missing empId): {result['skipped']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
