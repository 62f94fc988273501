#!/usr/bin/env python3
"""
Ensure Jobs Schema
------------------
Creates the jobs table (if missing) and adds any column the reconciler
depends on (provider, provider_task_id, video_url, error_message, ...).
Every statement is IF NOT EXISTS, so this is safe to run on every deploy.

Usage:
    python scripts/ensure_jobs_schema.py

    # Show the statements without touching the database
    python scripts/ensure_jobs_schema.py --dry-run

Environment variables:
    DATABASE_URL: PostgreSQL connection string
    APP_SCHEMA: schema holding the jobs table (default: launchpilot)
"""
import argparse
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Create/upgrade the jobs table used by the reconciler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the DDL instead of executing it",
    )
    args = parser.parse_args(argv)

    from launchpilot.config import config
    from launchpilot.db import JOB_COLUMNS, DatabaseError, Tables, ensure_schema

    if args.dry_run:
        print(f"-- schema {config.APP_SCHEMA}, table {Tables.JOBS}")
        for column, ddl in JOB_COLUMNS:
            print(f"ALTER TABLE {Tables.JOBS} ADD COLUMN IF NOT EXISTS {column} {ddl};")
        return 0

    try:
        statements = ensure_schema()
    except DatabaseError as e:
        print(f"ERROR: Could not ensure schema: {e}")
        return 2

    print(f"OK: {len(statements)} statements applied to {Tables.JOBS}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
