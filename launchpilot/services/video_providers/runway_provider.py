"""
Runway Video Provider: classifies Runway task status for the reconciler.

Implements the VideoProvider interface defined in video_router.py.

Runway task statuses:
  PENDING, THROTTLED, RUNNING  → still generating
  SUCCEEDED                    → output[0] is the video URL
  FAILED, CANCELLED            → terminal failure

Runway API docs: https://docs.dev.runwayml.com/api
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from launchpilot.services.runway_service import (
    RunwayError,
    check_runway_configured,
    runway_task_status,
)
from launchpilot.services.video_router import VendorStatus, VideoProvider


_PENDING_STATUSES = {"PENDING", "THROTTLED", "RUNNING"}

CANCELLED_MESSAGE = "Video generation was cancelled"
DEFAULT_FAILURE_MESSAGE = "Video generation failed"


def _failure_message(resp: Dict[str, Any]) -> str:
    failure = resp.get("failure") or resp.get("error")
    if isinstance(failure, dict):
        failure = failure.get("message") or failure.get("reason")
    return str(failure) if failure else DEFAULT_FAILURE_MESSAGE


class RunwayProvider(VideoProvider):
    """Runway promo-clip provider."""

    name = "runway"

    def __init__(self, timeout: Optional[tuple] = None):
        self.timeout = timeout

    def is_configured(self) -> Tuple[bool, Optional[str]]:
        return check_runway_configured()

    def check_status(self, task_id: str) -> VendorStatus:
        configured, config_err = self.is_configured()
        if not configured:
            return VendorStatus.transient(f"runway_not_configured: {config_err}")

        try:
            resp = runway_task_status(task_id, timeout=self.timeout)
        except RunwayError as e:
            if not e.retryable:
                # auth, config or 4xx: stays pending until someone fixes the request
                print(f"[Runway] ERROR: non-retryable lookup failure for task {task_id}: {e}")
                return VendorStatus.transient(f"runway_request_rejected: {e.message}")
            print(f"[Runway] Status lookup failed for task {task_id}: {e}")
            return VendorStatus.transient(f"runway_api_error: {e.message}")

        raw_status = str(resp.get("status") or "UNKNOWN").upper()

        if raw_status == "SUCCEEDED":
            outputs: List[str] = resp.get("output") or []
            video_url = outputs[0] if outputs and isinstance(outputs[0], str) else ""
            if not video_url:
                return VendorStatus.transient("runway_missing_output: task succeeded without output", raw_status)
            return VendorStatus.done(video_url, raw_status)

        if raw_status == "FAILED":
            return VendorStatus.error(_failure_message(resp), raw_status)

        if raw_status == "CANCELLED":
            return VendorStatus.error(CANCELLED_MESSAGE, raw_status)

        if raw_status in _PENDING_STATUSES:
            return VendorStatus.pending(raw_status)

        # Unknown status, try again next run
        return VendorStatus.transient(f"runway_unknown_status: {raw_status}", raw_status)
