"""
Reconciliation Service - Converges pending video jobs with their providers.

Runs periodically (cron hitting GET /api/poll-videos, or
scripts/poll_pending_videos.py) and for every pending job:
1. Looks up the provider task (D-ID talk / Runway task)
2. done    -> video_url = result, status = complete
3. error   -> error_message = reason, status = failed
4. pending -> untouched, or failed once older than PENDING_EXPIRY_MINUTES (if set)
5. lookup failed (timeout, 5xx, bad payload) -> untouched, retried next run

The reconciler holds no state between runs; everything lives in the jobs
table, so re-running after a partial failure is always safe. Writes are
conditional on status = 'pending', which keeps terminal rows untouched.

Usage:
    from launchpilot.services.reconciliation_service import JobReconciler

    summary = JobReconciler().reconcile_pending_jobs()
    print(summary.to_dict())
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from launchpilot.config import config
from launchpilot.db import now_utc
from launchpilot.services.job_store import JobStore
from launchpilot.services.video_router import (
    UnknownProviderError,
    VendorState,
    VendorStatus,
    VideoRouter,
    resolve_provider_name,
)
from launchpilot.utils.helpers import log_status_summary, short_url


EXPIRED_MESSAGE = "Video generation took too long. Please try again."


class Outcome:
    """Per-job result of one reconciliation run."""
    COMPLETED = "completed"
    FAILED = "failed"
    UNCHANGED = "unchanged"
    TRANSIENT = "transient"
    EXPIRED = "expired"
    WRITE_ERROR = "write_error"
    ALREADY_RESOLVED = "already_resolved"
    SKIPPED = "skipped"


@dataclass
class ReconcileSummary:
    """Aggregate counts for one invocation, returned to the caller as JSON."""

    started_at: str
    finished_at: Optional[str] = None
    duration_ms: int = 0
    candidates: int = 0
    checked: int = 0
    completed: int = 0
    failed: int = 0
    unchanged: int = 0
    transient: int = 0
    expired: int = 0
    write_errors: int = 0
    already_resolved: int = 0
    skipped: int = 0
    cancelled: bool = False
    results: List[Dict[str, Any]] = field(default_factory=list)

    _COUNTERS = {
        Outcome.COMPLETED: "completed",
        Outcome.FAILED: "failed",
        Outcome.UNCHANGED: "unchanged",
        Outcome.TRANSIENT: "transient",
        Outcome.EXPIRED: "expired",
        Outcome.WRITE_ERROR: "write_errors",
        Outcome.ALREADY_RESOLVED: "already_resolved",
        Outcome.SKIPPED: "skipped",
    }

    def record(self, result: Dict[str, Any]) -> None:
        outcome = result["outcome"]
        setattr(self, self._COUNTERS[outcome], getattr(self, self._COUNTERS[outcome]) + 1)
        if result.get("vendor_state") in (VendorState.PENDING, VendorState.DONE, VendorState.ERROR):
            self.checked += 1
        self.results.append(result)

    def finish(self, started_monotonic: float) -> "ReconcileSummary":
        self.finished_at = now_utc().isoformat()
        self.duration_ms = int((time.monotonic() - started_monotonic) * 1000)
        return self

    @property
    def updated(self) -> int:
        """Rows written by this run."""
        return self.completed + self.failed + self.expired

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["updated"] = self.updated
        return data


class ReconciliationError(Exception):
    """Raised when the run cannot proceed (e.g. pending jobs cannot be read)."""

    def __init__(self, message: str, summary: Optional[ReconcileSummary] = None):
        super().__init__(message)
        self.message = message
        self.summary = summary


def _as_aware(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class JobReconciler:
    """
    Bring each pending job in line with its provider, once per invocation.

    Vendor lookups run on a bounded thread pool; store writes happen on the
    calling thread as each lookup completes, one short transaction per job.
    """

    def __init__(
        self,
        store: Optional[JobStore] = None,
        router: Optional[VideoRouter] = None,
        max_workers: Optional[int] = None,
        batch_limit: Optional[int] = None,
        expiry_minutes: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store or JobStore()
        self.router = router or VideoRouter()
        self.max_workers = max(1, max_workers if max_workers is not None else config.RECONCILE_MAX_WORKERS)
        self.batch_limit = batch_limit if batch_limit is not None else config.RECONCILE_BATCH_LIMIT
        self.expiry_minutes = expiry_minutes if expiry_minutes is not None else config.PENDING_EXPIRY_MINUTES
        self.clock = clock or now_utc

    # ─────────────────────────────────────────────────────────────
    # Main Entry Point
    # ─────────────────────────────────────────────────────────────
    def reconcile_pending_jobs(self, cancel_event: Optional[threading.Event] = None) -> ReconcileSummary:
        """
        Run one reconciliation pass.

        Args:
            cancel_event: once set, jobs not yet looked up are reported as
                skipped; writes already committed stay committed.

        Returns:
            ReconcileSummary

        Raises:
            ReconciliationError: the pending set could not be read. The
                error carries the (empty) summary.
        """
        started = time.monotonic()
        summary = ReconcileSummary(started_at=self.clock().isoformat())
        print(f"[RECONCILE] Starting run (workers={self.max_workers}, limit={self.batch_limit})")

        try:
            jobs = self.store.list_pending_jobs(limit=self.batch_limit)
        except Exception as e:
            print(f"[RECONCILE] ERROR reading pending jobs: {e}")
            summary.finish(started)
            raise ReconciliationError(f"Failed to read pending jobs: {e}", summary) from e

        jobs = self._dedupe(jobs)
        summary.candidates = len(jobs)
        if not jobs:
            print("[RECONCILE] No pending jobs found")
            return summary.finish(started)

        print(f"[RECONCILE] Found {len(jobs)} pending jobs")

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="reconcile") as executor:
            futures = [executor.submit(self._lookup, job, cancel_event) for job in jobs]
            for future in as_completed(futures):
                job, provider_name, status = future.result()
                result = self._apply(job, provider_name, status)
                summary.record(result)

        summary.cancelled = bool(cancel_event and cancel_event.is_set())
        summary.finish(started)
        print(
            f"[RECONCILE] Done in {summary.duration_ms}ms: candidates={summary.candidates} "
            f"checked={summary.checked} completed={summary.completed} failed={summary.failed} "
            f"unchanged={summary.unchanged} transient={summary.transient} expired={summary.expired} "
            f"write_errors={summary.write_errors} skipped={summary.skipped}"
        )
        return summary

    # ─────────────────────────────────────────────────────────────
    # Per-job steps
    # ─────────────────────────────────────────────────────────────
    @staticmethod
    def _dedupe(jobs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        seen = set()
        unique = []
        for job in jobs or []:
            job_id = str(job.get("id"))
            if job_id in seen:
                continue
            seen.add(job_id)
            unique.append(job)
        return unique

    def _lookup(
        self, job: Dict[str, Any], cancel_event: Optional[threading.Event]
    ) -> Tuple[Dict[str, Any], str, Optional[VendorStatus]]:
        """Runs on a worker thread. Never raises."""
        provider_name = resolve_provider_name(job)
        if cancel_event is not None and cancel_event.is_set():
            return job, provider_name, None

        task_id = str(job.get("provider_task_id"))
        try:
            provider = self.router.provider_for_job(job)
            status = provider.check_status(task_id)
        except UnknownProviderError as e:
            status = VendorStatus.transient(str(e))
        except Exception as e:
            status = VendorStatus.transient(f"{provider_name}_lookup_error: {type(e).__name__}: {e}")

        if not isinstance(status, VendorStatus):
            status = VendorStatus.transient(f"{provider_name}_bad_status: {status!r}")
        return job, provider_name, status

    def _apply(self, job: Dict[str, Any], provider_name: str, status: Optional[VendorStatus]) -> Dict[str, Any]:
        """Write the outcome for one job. Store errors are recorded, never raised."""
        job_id = str(job.get("id"))
        result: Dict[str, Any] = {
            "job_id": job_id,
            "provider": provider_name,
            "task_id": job.get("provider_task_id"),
        }

        if status is None:
            result["outcome"] = Outcome.SKIPPED
            return result

        result["vendor_state"] = status.state
        log_status_summary(provider_name, job_id, status.to_dict())

        try:
            if status.state == VendorState.DONE:
                result["video_url"] = status.video_url
                written = self.store.mark_complete(job_id, status.video_url)
                result["outcome"] = Outcome.COMPLETED if written else Outcome.ALREADY_RESOLVED
                print(f"[RECONCILE] Job {job_id} ({provider_name}) complete: {short_url(status.video_url)}")

            elif status.state == VendorState.ERROR:
                result["message"] = status.message
                written = self.store.mark_failed(job_id, status.message)
                result["outcome"] = Outcome.FAILED if written else Outcome.ALREADY_RESOLVED
                print(f"[RECONCILE] Job {job_id} ({provider_name}) failed: {status.message}")

            elif status.state == VendorState.PENDING:
                # Only a vendor that answered "still pending" can expire a job
                if self._is_expired(job):
                    result["message"] = EXPIRED_MESSAGE
                    written = self.store.mark_failed(job_id, EXPIRED_MESSAGE)
                    result["outcome"] = Outcome.EXPIRED if written else Outcome.ALREADY_RESOLVED
                    print(f"[RECONCILE] Job {job_id} ({provider_name}) expired after {self.expiry_minutes} min")
                else:
                    result["outcome"] = Outcome.UNCHANGED

            else:
                result["outcome"] = Outcome.TRANSIENT
                result["message"] = status.message
                print(f"[RECONCILE] Job {job_id} ({provider_name}) transient: {status.message}")

        except Exception as e:
            print(f"[RECONCILE] ERROR writing job {job_id}: {e}")
            result["outcome"] = Outcome.WRITE_ERROR
            result["message"] = f"store_write_failed: {type(e).__name__}"

        return result

    def _is_expired(self, job: Dict[str, Any]) -> bool:
        if not self.expiry_minutes or self.expiry_minutes <= 0:
            return False
        created_at = _as_aware(job.get("created_at"))
        if created_at is None:
            return False
        return self.clock() - created_at > timedelta(minutes=self.expiry_minutes)


def reconcile_pending_jobs(cancel_event: Optional[threading.Event] = None) -> ReconcileSummary:
    """Run one pass with the configured store and providers."""
    return JobReconciler().reconcile_pending_jobs(cancel_event=cancel_event)
