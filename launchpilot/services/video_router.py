"""
Video Provider Registry.

Maps a job row to the vendor that owns its provider task id and gives the
reconciler one normalized status shape for every vendor.

Supported providers:
- did     (D-ID talking-head videos, talk ids look like ``tlk_...``)
- runway  (Runway promo clips, task ids are UUIDs)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple


# ── Normalized status ─────────────────────────────────────────
class VendorState:
    """Classification of a vendor status response."""
    PENDING = "pending"      # still generating
    DONE = "done"            # carries video_url
    ERROR = "error"          # terminal failure, carries message
    TRANSIENT = "transient"  # lookup failed (timeout, 5xx, bad payload); try next run


@dataclass
class VendorStatus:
    state: str
    video_url: Optional[str] = None
    message: Optional[str] = None
    raw_status: Optional[str] = None

    @classmethod
    def pending(cls, raw_status: str = None) -> "VendorStatus":
        return cls(VendorState.PENDING, raw_status=raw_status)

    @classmethod
    def done(cls, video_url: str, raw_status: str = None) -> "VendorStatus":
        return cls(VendorState.DONE, video_url=video_url, raw_status=raw_status)

    @classmethod
    def error(cls, message: str, raw_status: str = None) -> "VendorStatus":
        return cls(VendorState.ERROR, message=message, raw_status=raw_status)

    @classmethod
    def transient(cls, message: str, raw_status: str = None) -> "VendorStatus":
        return cls(VendorState.TRANSIENT, message=message, raw_status=raw_status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state,
            "video_url": self.video_url,
            "message": self.message,
            "raw_status": self.raw_status,
        }


# ── Provider base ─────────────────────────────────────────────
class VideoProvider:
    """Base interface every video provider must implement."""

    name: str = "unknown"

    def is_configured(self) -> Tuple[bool, Optional[str]]:
        return False, "Not implemented"

    def check_status(self, task_id: str) -> VendorStatus:
        """
        Look up a task and classify it. Implementations never raise for
        vendor failures; they return VendorStatus.transient instead.
        """
        raise NotImplementedError


class UnknownProviderError(Exception):
    """Raised when a job names a provider nobody registered."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"Unknown video provider: {provider}")


# ── Helpers ───────────────────────────────────────────────────
DID_TASK_PREFIX = "tlk_"


def resolve_provider_name(job: Dict[str, Any]) -> str:
    """
    Provider for a job row. Rows written before the provider column existed
    are inferred from the task id shape.
    """
    provider = (job.get("provider") or "").strip().lower()
    if provider:
        return provider
    task_id = str(job.get("provider_task_id") or "")
    if task_id.startswith(DID_TASK_PREFIX):
        return "did"
    return "runway"


def _default_providers() -> List[VideoProvider]:
    # Lazy import: providers import VendorStatus from this module
    from launchpilot.services.video_providers.did_provider import DIDProvider
    from launchpilot.services.video_providers.runway_provider import RunwayProvider

    return [DIDProvider(), RunwayProvider()]


# ── Router ────────────────────────────────────────────────────
class VideoRouter:
    """Look up the provider responsible for a job."""

    def __init__(self, providers: List[VideoProvider] | None = None):
        self.providers = providers if providers is not None else _default_providers()

    def get_available_providers(self) -> List[VideoProvider]:
        return [p for p in self.providers if p.is_configured()[0]]

    def get_provider(self, name: str) -> Optional[VideoProvider]:
        for p in self.providers:
            if p.name == name:
                return p
        return None

    def provider_for_job(self, job: Dict[str, Any]) -> VideoProvider:
        name = resolve_provider_name(job)
        provider = self.get_provider(name)
        if provider is None:
            raise UnknownProviderError(name)
        return provider
