"""Services package for the reconciler backend."""

from .job_store import JobStatus, JobStore, public_job_view
from .reconciliation_service import (
    JobReconciler,
    ReconcileSummary,
    ReconciliationError,
    reconcile_pending_jobs,
)
from .video_router import VendorState, VendorStatus, VideoRouter

__all__ = [
    "JobStatus",
    "JobStore",
    "public_job_view",
    "JobReconciler",
    "ReconcileSummary",
    "ReconciliationError",
    "reconcile_pending_jobs",
    "VendorState",
    "VendorStatus",
    "VideoRouter",
]
