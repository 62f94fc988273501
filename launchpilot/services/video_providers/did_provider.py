"""
D-ID Video Provider: classifies D-ID talk status for the reconciler.

Implements the VideoProvider interface defined in video_router.py.

D-ID talk statuses:
  created, started   → still generating
  done               → result_url is the video
  error, rejected    → terminal failure; ``error`` is either a string or
                       an object like {"kind": "FaceError", "description": "..."}
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from launchpilot.services.did_service import (
    DIDError,
    check_did_configured,
    did_talk_status,
)
from launchpilot.services.video_router import VendorStatus, VideoProvider


_PENDING_STATUSES = {"created", "started"}
_ERROR_STATUSES = {"error", "rejected"}

DEFAULT_FAILURE_MESSAGE = "Video generation failed"


def _error_message(resp: Dict[str, Any]) -> str:
    err = resp.get("error")
    if isinstance(err, dict):
        return str(err.get("description") or err.get("kind") or DEFAULT_FAILURE_MESSAGE)
    if err:
        return str(err)
    if resp.get("status") == "rejected":
        return "Video request was rejected by the provider"
    return DEFAULT_FAILURE_MESSAGE


class DIDProvider(VideoProvider):
    """D-ID talking-head provider."""

    name = "did"

    def __init__(self, timeout: Optional[tuple] = None):
        self.timeout = timeout

    def is_configured(self) -> Tuple[bool, Optional[str]]:
        return check_did_configured()

    def check_status(self, task_id: str) -> VendorStatus:
        configured, config_err = self.is_configured()
        if not configured:
            return VendorStatus.transient(f"did_not_configured: {config_err}")

        try:
            resp = did_talk_status(task_id, timeout=self.timeout)
        except DIDError as e:
            if not e.retryable:
                # auth, config or 4xx: stays pending until someone fixes the request
                print(f"[DID] ERROR: non-retryable lookup failure for talk {task_id}: {e}")
                return VendorStatus.transient(f"did_request_rejected: {e.message}")
            print(f"[DID] Status lookup failed for talk {task_id}: {e}")
            return VendorStatus.transient(f"did_api_error: {e.message}")

        raw_status = str(resp.get("status") or "unknown").lower()

        if raw_status == "done":
            video_url = resp.get("result_url")
            if not video_url or not isinstance(video_url, str):
                return VendorStatus.transient("did_missing_result_url: talk done without result_url", raw_status)
            return VendorStatus.done(video_url, raw_status)

        if raw_status in _ERROR_STATUSES:
            return VendorStatus.error(_error_message(resp), raw_status)

        if raw_status in _PENDING_STATUSES:
            return VendorStatus.pending(raw_status)

        return VendorStatus.transient(f"did_unknown_status: {raw_status}", raw_status)
