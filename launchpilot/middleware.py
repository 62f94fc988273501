"""
Middleware for reconciler routes.

Usage:
    from launchpilot.middleware import require_cron_token

    @bp.route("/poll-videos", methods=["GET"])
    @require_cron_token
    def poll_videos():
        ...

The cron token is optional: when RECONCILE_TOKEN is unset every caller is
let through.
"""

import hmac
from functools import wraps

from flask import request, g, jsonify


def _extract_cron_token() -> str:
    return (request.headers.get("X-Cron-Token") or request.args.get("key") or "").strip()


def require_cron_token(f):
    """
    Decorator that guards scheduler-only endpoints.

    Token is read from the X-Cron-Token header or the ``key`` query param.
    Returns 403 on a missing or wrong token.

    Sets on g:
        - g.trigger_auth: 'token' or 'open'
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        from launchpilot.config import config

        if not config.RECONCILE_AUTH_REQUIRED:
            g.trigger_auth = "open"
            return f(*args, **kwargs)

        token = _extract_cron_token()
        if not token or not hmac.compare_digest(token, config.RECONCILE_TOKEN):
            return jsonify({
                "ok": False,
                "error": {
                    "code": "INVALID_CRON_TOKEN",
                    "message": "Missing or invalid cron token"
                }
            }), 403

        g.trigger_auth = "token"
        return f(*args, **kwargs)

    return decorated
