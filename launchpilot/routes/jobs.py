"""
/api/jobs routes - Read-only job status for the results page.

Endpoints:
- GET /api/jobs/<job_id>/status  - Current status, resolved video URL, user-facing error

The pending sentinel stored in video_url is never exposed; clients see
video_url = null until the reconciler resolves the job.
"""

from flask import Blueprint, current_app, jsonify

from launchpilot.db import USE_DB
from launchpilot.services.job_store import JobStore, public_job_view

bp = Blueprint("jobs", __name__)


def _get_store():
    store = current_app.config.get("JOB_STORE")
    if store is not None:
        return store
    if not USE_DB:
        return None
    return JobStore()


@bp.route("/<job_id>/status", methods=["GET"])
def get_job_status(job_id):
    store = _get_store()
    if store is None:
        return jsonify({
            "ok": False,
            "error": {
                "code": "DB_DISABLED",
                "message": "Job store is not configured"
            }
        }), 503

    job = store.get_job(job_id)
    if not job:
        return jsonify({
            "ok": False,
            "error": {
                "code": "JOB_NOT_FOUND",
                "message": "Job not found"
            }
        }), 404

    return jsonify({"ok": True, **public_job_view(job)})
