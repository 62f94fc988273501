"""Utility helpers for the reconciler backend."""

from .helpers import log_status_summary, short_url

__all__ = [
    "log_status_summary",
    "short_url",
]
