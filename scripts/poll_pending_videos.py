#!/usr/bin/env python3
"""
Poll Pending Videos
-------------------
Runs one reconciliation pass: every pending video job is checked against
its provider (D-ID / Runway) and completed or failed when the provider
reports a terminal state.

Run from cron (every minute is fine; runs are idempotent):
    * * * * * cd /path/to/launchpilot && python scripts/poll_pending_videos.py >> logs/poll-videos.log 2>&1

Or manually with options:
    # Default run
    python scripts/poll_pending_videos.py

    # Fewer parallel vendor lookups
    python scripts/poll_pending_videos.py --workers 2

    # Fail jobs stuck pending for more than 30 minutes
    python scripts/poll_pending_videos.py --expiry-minutes 30

    # Machine-readable output
    python scripts/poll_pending_videos.py --json

Exit codes:
    0  run completed
    1  run completed but some job writes failed (they retry next run)
    2  pending jobs could not be read
    130 cancelled by SIGINT/SIGTERM

Environment variables:
    DATABASE_URL: PostgreSQL connection string
    DID_API_KEY: D-ID "username:password" key
    RUNWAY_API_KEY: Runway API secret
"""
import argparse
import json
import os
import signal
import sys
import threading
from datetime import datetime, timezone

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Reconcile pending video jobs with their providers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Parallel vendor lookups (default: RECONCILE_MAX_WORKERS)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Max pending jobs per run (default: RECONCILE_BATCH_LIMIT)",
    )
    parser.add_argument(
        "--expiry-minutes",
        type=int,
        default=None,
        help="Fail jobs pending longer than this (default: PENDING_EXPIRY_MINUTES, 0 = never)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the summary as JSON",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Print per-job results",
    )
    args = parser.parse_args(argv)

    if args.workers is not None and args.workers < 1:
        print("ERROR: --workers must be at least 1")
        return 1
    if args.limit is not None and args.limit < 1:
        print("ERROR: --limit must be at least 1")
        return 1

    from launchpilot.services.reconciliation_service import JobReconciler, ReconciliationError

    cancel_event = threading.Event()

    def _cancel(signum, _frame):
        print(f"[RECONCILE] Received signal {signum}, cancelling remaining lookups...")
        cancel_event.set()

    previous_handlers = {sig: signal.signal(sig, _cancel) for sig in (signal.SIGINT, signal.SIGTERM)}

    start_time = datetime.now(timezone.utc)
    print(f"[{start_time.isoformat()}] Polling pending videos...")

    reconciler = JobReconciler(
        max_workers=args.workers,
        batch_limit=args.limit,
        expiry_minutes=args.expiry_minutes,
    )

    try:
        summary = reconciler.reconcile_pending_jobs(cancel_event=cancel_event)
    except ReconciliationError as e:
        print(f"ERROR: Reconciliation failed: {e.message}")
        return 2
    finally:
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)

    if args.json:
        print(json.dumps(summary.to_dict(), default=str))
    else:
        print_summary(summary.to_dict(), args.verbose)

    if summary.cancelled:
        return 130
    if summary.write_errors > 0:
        print(f"  WARNING: {summary.write_errors} job writes failed")
        return 1
    return 0


def print_summary(result: dict, verbose: bool = False):
    """Print reconciliation results."""
    from launchpilot.utils.helpers import short_url

    print("=== Video Reconciliation Results ===")
    print(f"  Pending jobs:     {result.get('candidates', 0)}")
    print(f"  Checked:          {result.get('checked', 0)}")
    print(f"  Completed:        {result.get('completed', 0)}")
    print(f"  Failed:           {result.get('failed', 0)}")
    print(f"  Still pending:    {result.get('unchanged', 0)}")
    print(f"  Transient errors: {result.get('transient', 0)}")
    print(f"  Expired:          {result.get('expired', 0)}")
    print(f"  Write errors:     {result.get('write_errors', 0)}")
    if result.get("skipped"):
        print(f"  Skipped (cancel): {result.get('skipped', 0)}")
    print(f"  Duration:         {result.get('duration_ms', 0)}ms")

    if verbose and result.get("results"):
        print()
        print("  Jobs:")
        for r in result["results"]:
            detail = short_url(r.get("video_url")) or r.get("message") or ""
            print(f"    - {r['job_id']} [{r.get('provider')}] {r['outcome']} {detail}".rstrip())


if __name__ == "__main__":
    sys.exit(main())
