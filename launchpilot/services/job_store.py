"""
Job Store - Reads and transitions rows of the jobs table.

A job is created elsewhere (the submission path) with status=pending and a
placeholder result reference such as ``pending:runway_processing``. Only the
reconciler moves it out of pending, and it does so with conditional writes:

    UPDATE jobs SET ... WHERE id = %s AND status = 'pending'

so terminal rows are never touched and overlapping pollers cannot clobber
each other (the loser sees rowcount 0).

Job Statuses:
- pending: provider still working (or not yet polled)
- complete: video_url holds a resolved URL
- failed: error_message holds a human-readable reason
"""

from typing import Optional, Dict, Any, List

from launchpilot.db import transaction, fetch_one, fetch_all, Tables


PENDING_PREFIX = "pending:"

# Longest error text we persist; users see this verbatim
MAX_ERROR_LENGTH = 500


class JobStatus:
    """Valid job statuses."""
    PENDING = "pending"
    COMPLETE = "complete"
    FAILED = "failed"


def is_pending_reference(value: Optional[str]) -> bool:
    """True if a result reference is unresolved (null, empty or a pending sentinel)."""
    if value is None:
        return True
    value = str(value).strip()
    return not value or value.startswith(PENDING_PREFIX)


def is_resolved_url(value: Optional[str]) -> bool:
    return not is_pending_reference(value)


def clean_error_message(message: Optional[str]) -> str:
    """Normalize an error message for storage."""
    text = " ".join(str(message or "").split())
    if not text:
        text = "Video generation failed"
    return text[:MAX_ERROR_LENGTH]


def public_job_view(job: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shape a job row for end users.
    The pending sentinel is internal state, so video_url is null until resolved.
    """
    video_url = job.get("video_url")
    created_at = job.get("created_at")
    return {
        "job_id": str(job.get("id")),
        "business_name": job.get("business_name"),
        "status": job.get("status"),
        "video_url": video_url if is_resolved_url(video_url) else None,
        "error_message": job.get("error_message") if job.get("status") == JobStatus.FAILED else None,
        "created_at": created_at.isoformat() if hasattr(created_at, "isoformat") else created_at,
    }


class JobStore:
    """
    PostgreSQL-backed access to the jobs table.

    Every method opens its own short transaction. Database failures surface
    as launchpilot.db.DatabaseError subclasses.
    """

    def __init__(self, table: str = None):
        self.table = table or Tables.JOBS

    def list_pending_jobs(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Jobs the reconciler should look at: still pending, with a provider
        task id, and an unresolved result reference. Oldest first.
        """
        sql = f"""
            SELECT id, business_name, created_at, updated_at, status,
                   provider, provider_task_id, video_url, error_message
            FROM {self.table}
            WHERE status = %s
              AND provider_task_id IS NOT NULL
              AND provider_task_id <> ''
              AND (video_url IS NULL OR video_url = '' OR video_url LIKE %s)
            ORDER BY created_at ASC
        """
        params: tuple = (JobStatus.PENDING, PENDING_PREFIX + "%")
        if limit:
            sql += " LIMIT %s"
            params = params + (int(limit),)

        with transaction() as cur:
            cur.execute(sql, params)
            return fetch_all(cur)

    def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        with transaction() as cur:
            cur.execute(
                f"""
                SELECT id, business_name, created_at, updated_at, status,
                       provider, provider_task_id, video_url, error_message
                FROM {self.table}
                WHERE id = %s
                """,
                (str(job_id),),
            )
            return fetch_one(cur)

    def mark_complete(self, job_id: str, video_url: str) -> bool:
        """
        Transition pending -> complete with the resolved URL.
        Returns False if the row was no longer pending.
        """
        if not is_resolved_url(video_url):
            raise ValueError(f"Refusing to complete job {job_id} with unresolved url {video_url!r}")

        with transaction() as cur:
            cur.execute(
                f"""
                UPDATE {self.table}
                SET status = %s, video_url = %s, updated_at = NOW()
                WHERE id = %s AND status = %s
                """,
                (JobStatus.COMPLETE, video_url, str(job_id), JobStatus.PENDING),
            )
            return cur.rowcount > 0

    def mark_failed(self, job_id: str, error_message: str) -> bool:
        """
        Transition pending -> failed. video_url is left as it was.
        Returns False if the row was no longer pending.
        """
        with transaction() as cur:
            cur.execute(
                f"""
                UPDATE {self.table}
                SET status = %s, error_message = %s, updated_at = NOW()
                WHERE id = %s AND status = %s
                """,
                (JobStatus.FAILED, clean_error_message(error_message), str(job_id), JobStatus.PENDING),
            )
            return cur.rowcount > 0
