"""
HTTP Error Handlers
-------------------
JSON error envelope shared by every blueprint:

    {"ok": false, "error": {"code": "NOT_FOUND", "message": "..."}}

Usage:
    from launchpilot.utils.error_handlers import register_error_handlers
    register_error_handlers(app)
"""

from __future__ import annotations

from typing import Any, Optional

from flask import jsonify
from werkzeug.exceptions import HTTPException

from launchpilot.db import DatabaseError


def make_error_response(code: str, message: str, status: int, details: Optional[Any] = None):
    """Build a (response, status) tuple with the standard error envelope."""
    body = {"ok": False, "error": {"code": code, "message": message}}
    if details is not None:
        body["error"]["details"] = details
    return jsonify(body), status


def handle_http_exception(e: HTTPException):
    code = (e.name or "HTTP_ERROR").upper().replace(" ", "_")
    return make_error_response(code, e.description or e.name, e.code or 500)


def handle_database_error(e: DatabaseError):
    print(f"[HTTP] Database error: {type(e).__name__}: {e}")
    return make_error_response("DATABASE_ERROR", "Database unavailable", 503)


def handle_internal_error(e: Exception):
    print(f"[HTTP] Unhandled error: {type(e).__name__}: {e}")
    return make_error_response("INTERNAL_ERROR", "Internal server error", 500)


def register_error_handlers(app) -> None:
    app.register_error_handler(HTTPException, handle_http_exception)
    app.register_error_handler(DatabaseError, handle_database_error)
    app.register_error_handler(Exception, handle_internal_error)
