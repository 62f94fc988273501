"""
Health check routes.

Registered under /api.
"""

from __future__ import annotations

from flask import Blueprint, jsonify

from launchpilot.db import USE_DB, get_conn

bp = Blueprint("health", __name__)


@bp.route("/health", methods=["GET"])
def health():
    from launchpilot.services.video_router import VideoRouter

    providers = [p.name for p in VideoRouter().get_available_providers()]
    return jsonify({"ok": True, "service": "reconciler", "providers": providers})


@bp.route("/db-check", methods=["GET"])
def db_check():
    if not USE_DB:
        return jsonify({"ok": False, "error": "db_disabled"}), 503
    try:
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                _ = cur.fetchone()
        return jsonify({"ok": True, "db": "connected"})
    except Exception as e:
        print(f"[DB] db_check failed: {e}")
        return jsonify({"ok": False, "error": "db_query_failed"}), 503
