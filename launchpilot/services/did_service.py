"""
D-ID API HTTP Client.

Handles authentication and error parsing for the D-ID talks API.

Base URL: https://api.d-id.com
Auth:     Authorization: Basic base64(<DID_API_KEY>)
          DID_API_KEY is "username:password" from D-ID Studio account settings.

Endpoints used:
  GET  /talks/{id}         → poll talk status

Talk statuses: created, started, done, error, rejected.
The result_url returned on done is a pre-signed S3 link.
"""

from __future__ import annotations

import base64
from typing import Any, Dict, Optional, Tuple

import requests
from requests.exceptions import ConnectionError as RequestsConnectionError, Timeout

from launchpilot.config import config


# ── Exceptions ───────────────────────────────────────────────
class DIDError(Exception):
    """Typed exception for D-ID API errors."""

    def __init__(self, status_code: int, message: str, *, retryable: bool = False):
        self.status_code = status_code
        self.message = message
        self.retryable = retryable
        super().__init__(f"D-ID API error {status_code}: {message}")


class DIDConfigError(DIDError):
    """Raised when D-ID is not configured (missing API key)."""

    def __init__(self, message: str = "DID_API_KEY is not set"):
        super().__init__(status_code=0, message=message, retryable=False)


class DIDAuthError(DIDError):
    """Raised for 401/403 authentication failures."""

    def __init__(self, message: str = "D-ID authentication failed"):
        super().__init__(status_code=401, message=message, retryable=False)


class DIDQuotaError(DIDError):
    """Raised for 402/429 (out of credits or rate limited)."""

    def __init__(self, message: str = "D-ID rate limit or credit limit reached", status_code: int = 429):
        super().__init__(status_code=status_code, message=message, retryable=True)


# ── Internal helpers ─────────────────────────────────────────
def _get_api_key() -> str:
    key = config.DID_API_KEY
    if not key:
        raise DIDConfigError()
    return key


def _auth_header(api_key: str) -> str:
    return "Basic " + base64.b64encode(api_key.encode("utf-8")).decode("ascii")


def _headers() -> Dict[str, str]:
    return {
        "Authorization": _auth_header(_get_api_key()),
        "Accept": "application/json",
    }


def _parse_error(r: requests.Response) -> DIDError:
    """Convert a non-2xx response into a typed DIDError."""
    body_text = r.text[:500] if r.text else ""

    try:
        body = r.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        msg = body.get("description") or body.get("message") or body.get("kind") or body_text
    else:
        msg = body_text

    if r.status_code in (401, 403):
        return DIDAuthError(str(msg))
    if r.status_code in (402, 429):
        return DIDQuotaError(str(msg), status_code=r.status_code)

    retryable = r.status_code >= 500
    return DIDError(r.status_code, str(msg), retryable=retryable)


# ── Public API ───────────────────────────────────────────────
def check_did_configured() -> Tuple[bool, Optional[str]]:
    """Check whether D-ID API key is set.  Returns (ok, error_msg)."""
    try:
        _get_api_key()
        return True, None
    except DIDConfigError as e:
        return False, e.message


def did_get(path: str, timeout: Optional[tuple] = None) -> Dict[str, Any]:
    """
    GET from a D-ID API endpoint.

    Args:
        path: e.g. "/talks/<talk_id>"
        timeout: (connect, read) seconds; defaults to config.VENDOR_TIMEOUT

    Returns:
        Parsed JSON response

    Raises:
        DIDConfigError, DIDAuthError, DIDQuotaError, DIDError
    """
    url = f"{config.DID_API_BASE}{path}"
    headers = _headers()

    try:
        r = requests.get(url, headers=headers, timeout=timeout or config.VENDOR_TIMEOUT)
    except Timeout as e:
        raise DIDError(0, f"Timeout: {e}", retryable=True) from e
    except RequestsConnectionError as e:
        raise DIDError(0, f"Connection error: {e}", retryable=True) from e

    if not r.ok:
        raise _parse_error(r)

    try:
        body = r.json()
    except ValueError as e:
        raise DIDError(r.status_code, "Malformed JSON in response", retryable=True) from e
    if not isinstance(body, dict):
        raise DIDError(r.status_code, f"Unexpected payload type {type(body).__name__}", retryable=True)
    return body


def did_talk_status(talk_id: str, timeout: Optional[tuple] = None) -> Dict[str, Any]:
    """Fetch a talk by id: GET /talks/{talk_id}."""
    print(f"[DID] Checking status for talk {talk_id}")
    return did_get(f"/talks/{talk_id}", timeout=timeout)
