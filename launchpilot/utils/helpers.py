"""
General helper utilities shared by services, routes and scripts.

These functions are intentionally dependency-light so they can be reused
without pulling in Flask app globals.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse


def short_url(url: Any, max_len: int = 96) -> str:
    """Host + path of a URL, without the pre-signed query string."""
    if not url:
        return ""
    try:
        parsed = urlparse(str(url))
        if parsed.scheme and parsed.netloc:
            text = f"{parsed.netloc}{parsed.path}"
        else:
            text = str(url)
    except ValueError:
        text = str(url)
    return text[:max_len]


_logger = logging.getLogger("launchpilot.helpers")


def log_status_summary(prefix: str, job_id: str, status: dict) -> None:
    """Compact status logging for vendor polling."""
    try:
        st = status or {}
        _logger.info(
            "[status] %s job=%s state=%s raw=%s url=%s msg=%s",
            prefix,
            job_id,
            st.get("state"),
            st.get("raw_status"),
            short_url(st.get("video_url")),
            (st.get("message") or "")[:128],
        )
    except Exception as e:
        _logger.warning("[status] %s job=%s log-failed: %s", prefix, job_id, e)
