"""
Shared fixtures for reconciler tests.

FakeJobStore mirrors JobStore's contract (filtered read, conditional
writes) over an in-memory dict so tests never need a database.
"""

from __future__ import annotations

import copy
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from launchpilot.db import DatabaseConnectionError, DatabaseQueryError
from launchpilot.services.job_store import JobStatus, clean_error_message, is_pending_reference
from launchpilot.services.video_router import VendorStatus, VideoProvider, VideoRouter


NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def make_job(job_id: str, task_id: Optional[str] = "tlk_abc", **overrides) -> Dict[str, Any]:
    job = {
        "id": job_id,
        "business_name": f"Business {job_id}",
        "created_at": NOW - timedelta(minutes=2),
        "updated_at": NOW - timedelta(minutes=2),
        "status": JobStatus.PENDING,
        "provider": None,
        "provider_task_id": task_id,
        "video_url": f"pending:{task_id}" if task_id else "pending:creating",
        "error_message": None,
    }
    job.update(overrides)
    return job


class FakeJobStore:
    def __init__(self, jobs: List[Dict[str, Any]] = None):
        self.rows: Dict[str, Dict[str, Any]] = {}
        for job in jobs or []:
            self.rows[str(job["id"])] = dict(job)
        self.fail_reads = False
        self.fail_writes_for = set()
        self.writes: List[tuple] = []

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        return copy.deepcopy(self.rows)

    def list_pending_jobs(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        if self.fail_reads:
            raise DatabaseConnectionError("could not connect to server")
        pending = [
            dict(row) for row in self.rows.values()
            if row["status"] == JobStatus.PENDING
            and row.get("provider_task_id")
            and is_pending_reference(row.get("video_url"))
        ]
        pending.sort(key=lambda r: r["created_at"])
        return pending[:limit] if limit else pending

    def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        row = self.rows.get(str(job_id))
        return dict(row) if row else None

    def _check_write(self, job_id: str) -> None:
        if job_id in self.fail_writes_for:
            raise DatabaseQueryError("deadlock detected")

    def mark_complete(self, job_id: str, video_url: str) -> bool:
        self._check_write(job_id)
        row = self.rows.get(job_id)
        if not row or row["status"] != JobStatus.PENDING:
            return False
        row.update(status=JobStatus.COMPLETE, video_url=video_url, updated_at=NOW)
        self.writes.append(("complete", job_id))
        return True

    def mark_failed(self, job_id: str, error_message: str) -> bool:
        self._check_write(job_id)
        row = self.rows.get(job_id)
        if not row or row["status"] != JobStatus.PENDING:
            return False
        row.update(status=JobStatus.FAILED, error_message=clean_error_message(error_message), updated_at=NOW)
        self.writes.append(("failed", job_id))
        return True


class FakeProvider(VideoProvider):
    """Returns canned VendorStatus per task id; Exceptions are raised."""

    def __init__(self, name: str, responses: Dict[str, Any] = None):
        self.name = name
        self.responses = responses or {}
        self.calls: List[str] = []

    def is_configured(self):
        return True, None

    def check_status(self, task_id: str) -> VendorStatus:
        self.calls.append(task_id)
        response = self.responses.get(task_id, VendorStatus.pending("started"))
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response()
        return response


@pytest.fixture
def did_provider():
    return FakeProvider("did")


@pytest.fixture
def runway_provider():
    return FakeProvider("runway")


@pytest.fixture
def router(did_provider, runway_provider):
    return VideoRouter([did_provider, runway_provider])
