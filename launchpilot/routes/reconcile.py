"""
Reconciliation trigger routes.

Endpoints:
- GET /api/poll-videos       - Run one reconciliation pass synchronously
- GET /api/poll-did-videos   - Alias kept for existing cron entries

Intended to be hit by an external scheduler, e.g.:
    * * * * * curl -fsS -H "X-Cron-Token: $RECONCILE_TOKEN" https://app/api/poll-videos

Responses:
    200 {"ok": true, "candidates": 5, "checked": 4, ...}
    500 {"ok": false, "error": {"code": "RECONCILE_FAILED", ...}, "summary": {...}}
    503 {"ok": false, "error": {"code": "DB_DISABLED", ...}}
"""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify

from launchpilot.db import USE_DB
from launchpilot.middleware import require_cron_token

bp = Blueprint("reconcile", __name__)


def _get_reconciler():
    """App-configured reconciler (tests inject one), else the default."""
    reconciler = current_app.config.get("JOB_RECONCILER")
    if reconciler is not None:
        return reconciler
    if not USE_DB:
        return None
    from launchpilot.services.reconciliation_service import JobReconciler
    return JobReconciler()


@bp.route("/poll-videos", methods=["GET"])
@bp.route("/poll-did-videos", methods=["GET"])
@require_cron_token
def poll_videos():
    """
    Reconcile every pending video job with its provider.

    No request body. Per-job vendor failures are reported inside the summary
    and still return 200; only a failure to read the jobs table is a 500.
    """
    from launchpilot.services.reconciliation_service import ReconciliationError

    reconciler = _get_reconciler()
    if reconciler is None:
        return jsonify({
            "ok": False,
            "error": {
                "code": "DB_DISABLED",
                "message": "Job store is not configured"
            }
        }), 503

    print(f"[RECONCILE] Triggered via HTTP (auth={getattr(g, 'trigger_auth', 'open')})")

    try:
        summary = reconciler.reconcile_pending_jobs()
    except ReconciliationError as e:
        return jsonify({
            "ok": False,
            "error": {
                "code": "RECONCILE_FAILED",
                "message": "Failed to read pending jobs from the job store"
            },
            "summary": e.summary.to_dict() if e.summary else None,
        }), 500

    return jsonify({"ok": True, **summary.to_dict()})
