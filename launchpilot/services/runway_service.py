"""
Runway API HTTP Client.

Handles authentication, headers and error parsing for the Runway task
status endpoint used by the reconciler.

Base URL: https://api.dev.runwayml.com
Auth:     Authorization: Bearer <RUNWAY_API_KEY>
Version:  X-Runway-Version: 2024-11-06

Endpoints used:
  GET  /v1/tasks/{id}      → poll task status

Task submission happens in the web app; this module only reads.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import requests
from requests.exceptions import ConnectionError as RequestsConnectionError, Timeout

from launchpilot.config import config


# ── Exceptions ───────────────────────────────────────────────
class RunwayError(Exception):
    """Typed exception for Runway API errors."""

    def __init__(self, status_code: int, message: str, *, retryable: bool = False):
        self.status_code = status_code
        self.message = message
        self.retryable = retryable
        super().__init__(f"Runway API error {status_code}: {message}")


class RunwayConfigError(RunwayError):
    """Raised when Runway is not configured (missing API key)."""

    def __init__(self, message: str = "RUNWAY_API_KEY is not set"):
        super().__init__(status_code=0, message=message, retryable=False)


class RunwayAuthError(RunwayError):
    """Raised for 401/403 authentication failures."""

    def __init__(self, message: str = "Runway authentication failed"):
        super().__init__(status_code=401, message=message, retryable=False)


class RunwayQuotaError(RunwayError):
    """Raised for 429 rate-limit / quota exhaustion."""

    def __init__(self, message: str = "Runway rate limit exceeded"):
        super().__init__(status_code=429, message=message, retryable=True)


# ── Internal helpers ─────────────────────────────────────────
def _get_api_key() -> str:
    key = config.RUNWAY_API_KEY
    if not key:
        raise RunwayConfigError()
    return key


def _headers() -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {_get_api_key()}",
        "X-Runway-Version": config.RUNWAY_API_VERSION,
        "Accept": "application/json",
    }


def _parse_error(r: requests.Response) -> RunwayError:
    """Convert a non-2xx response into a typed RunwayError."""
    body_text = r.text[:500] if r.text else ""

    try:
        body = r.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        msg = body.get("error", body.get("message", body_text))
    else:
        msg = body_text

    if r.status_code in (401, 403):
        return RunwayAuthError(str(msg))
    if r.status_code == 429:
        return RunwayQuotaError(str(msg))

    retryable = r.status_code >= 500
    return RunwayError(r.status_code, str(msg), retryable=retryable)


# ── Public API ───────────────────────────────────────────────
def check_runway_configured() -> Tuple[bool, Optional[str]]:
    """Check whether Runway API key is set.  Returns (ok, error_msg)."""
    try:
        _get_api_key()
        return True, None
    except RunwayConfigError as e:
        return False, e.message


def runway_get(path: str, timeout: Optional[tuple] = None) -> Dict[str, Any]:
    """
    GET from a Runway API endpoint.

    Args:
        path: e.g. "/v1/tasks/<task_id>"
        timeout: (connect, read) seconds; defaults to config.VENDOR_TIMEOUT

    Returns:
        Parsed JSON response

    Raises:
        RunwayConfigError, RunwayAuthError, RunwayQuotaError, RunwayError
    """
    url = f"{config.RUNWAY_API_BASE}{path}"
    headers = _headers()

    try:
        r = requests.get(url, headers=headers, timeout=timeout or config.VENDOR_TIMEOUT)
    except Timeout as e:
        raise RunwayError(0, f"Timeout: {e}", retryable=True) from e
    except RequestsConnectionError as e:
        raise RunwayError(0, f"Connection error: {e}", retryable=True) from e

    if not r.ok:
        raise _parse_error(r)

    try:
        body = r.json()
    except ValueError as e:
        raise RunwayError(r.status_code, "Malformed JSON in response", retryable=True) from e
    if not isinstance(body, dict):
        raise RunwayError(r.status_code, f"Unexpected payload type {type(body).__name__}", retryable=True)
    return body


def runway_task_status(task_id: str, timeout: Optional[tuple] = None) -> Dict[str, Any]:
    """Fetch a task by id: GET /v1/tasks/{task_id}."""
    return runway_get(f"/v1/tasks/{task_id}", timeout=timeout)
