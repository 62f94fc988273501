"""
Route tests using the Flask test client.

The reconciler and job store are injected through app.config, so these
tests never touch the database or a vendor.
"""

import pytest

from launchpilot.app import create_app
from launchpilot.config import config
from launchpilot.routes import reconcile as reconcile_routes
from launchpilot.services.job_store import JobStatus
from launchpilot.services.reconciliation_service import JobReconciler
from launchpilot.services.video_router import VendorStatus
from launchpilot.tests.conftest import NOW, FakeJobStore, make_job


@pytest.fixture
def store():
    return FakeJobStore([
        make_job("J1", "tlk_abc"),
        make_job("J2", "tlk_def"),
        make_job("J3", "tlk_ghi"),
    ])


@pytest.fixture
def client(store, router, monkeypatch):
    monkeypatch.setattr(config, "RECONCILE_TOKEN", "")
    reconciler = JobReconciler(store=store, router=router, max_workers=2, expiry_minutes=0, clock=lambda: NOW)
    app = create_app({"TESTING": True, "JOB_RECONCILER": reconciler, "JOB_STORE": store})
    return app.test_client()


class TestPollVideos:

    def test_returns_summary(self, client, store, did_provider):
        did_provider.responses["tlk_abc"] = VendorStatus.done("https://cdn.example.com/j1.mp4")
        did_provider.responses["tlk_def"] = VendorStatus.error("face not detected")

        resp = client.get("/api/poll-videos")

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["ok"] is True
        assert body["candidates"] == 3
        assert body["checked"] == 3
        assert body["completed"] == 1
        assert body["failed"] == 1
        assert body["unchanged"] == 1
        assert body["updated"] == 2
        assert store.rows["J1"]["status"] == JobStatus.COMPLETE
        assert store.rows["J2"]["status"] == JobStatus.FAILED

    def test_legacy_alias(self, client):
        resp = client.get("/api/poll-did-videos")
        assert resp.status_code == 200
        assert resp.get_json()["candidates"] == 3

    def test_vendor_failures_still_200(self, client, did_provider):
        did_provider.responses["tlk_abc"] = VendorStatus.transient("did_api_error: Timeout")

        resp = client.get("/api/poll-videos")

        assert resp.status_code == 200
        assert resp.get_json()["transient"] == 1

    def test_store_read_failure_is_500(self, client, store):
        store.fail_reads = True

        resp = client.get("/api/poll-videos")

        assert resp.status_code == 500
        body = resp.get_json()
        assert body["ok"] is False
        assert body["error"]["code"] == "RECONCILE_FAILED"
        assert body["summary"]["candidates"] == 0

    def test_post_not_allowed(self, client):
        assert client.post("/api/poll-videos").status_code == 405

    def test_db_disabled(self, monkeypatch):
        monkeypatch.setattr(config, "RECONCILE_TOKEN", "")
        monkeypatch.setattr(reconcile_routes, "USE_DB", False)
        app = create_app({"TESTING": True})

        resp = app.test_client().get("/api/poll-videos")

        assert resp.status_code == 503
        assert resp.get_json()["error"]["code"] == "DB_DISABLED"


class TestCronToken:

    @pytest.fixture(autouse=True)
    def _token(self, client, monkeypatch):
        # after the client fixture, which opens the endpoint
        monkeypatch.setattr(config, "RECONCILE_TOKEN", "s3cret")

    def test_missing_token_is_403(self, client, did_provider):
        resp = client.get("/api/poll-videos")
        assert resp.status_code == 403
        assert resp.get_json()["error"]["code"] == "INVALID_CRON_TOKEN"
        assert did_provider.calls == []

    def test_wrong_token_is_403(self, client):
        resp = client.get("/api/poll-videos", headers={"X-Cron-Token": "nope"})
        assert resp.status_code == 403

    def test_header_token(self, client):
        resp = client.get("/api/poll-videos", headers={"X-Cron-Token": "s3cret"})
        assert resp.status_code == 200

    def test_query_token(self, client):
        resp = client.get("/api/poll-videos?key=s3cret")
        assert resp.status_code == 200


class TestJobStatus:

    def test_pending_hides_sentinel(self, client):
        resp = client.get("/api/jobs/J1/status")

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == JobStatus.PENDING
        assert body["video_url"] is None
        assert body["error_message"] is None

    def test_complete_after_poll(self, client, did_provider):
        did_provider.responses["tlk_abc"] = VendorStatus.done("https://cdn.example.com/j1.mp4")
        client.get("/api/poll-videos")

        body = client.get("/api/jobs/J1/status").get_json()

        assert body["status"] == JobStatus.COMPLETE
        assert body["video_url"] == "https://cdn.example.com/j1.mp4"

    def test_failed_shows_error(self, client, did_provider):
        did_provider.responses["tlk_def"] = VendorStatus.error("face not detected")
        client.get("/api/poll-videos")

        body = client.get("/api/jobs/J2/status").get_json()

        assert body["status"] == JobStatus.FAILED
        assert body["error_message"] == "face not detected"
        assert body["video_url"] is None

    def test_unknown_job_is_404(self, client):
        resp = client.get("/api/jobs/missing/status")
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "JOB_NOT_FOUND"


class TestHealth:

    def test_health_lists_configured_providers(self, client, monkeypatch):
        monkeypatch.setattr(config, "DID_API_KEY", "user:pass")
        monkeypatch.setattr(config, "RUNWAY_API_KEY", "")

        resp = client.get("/api/health")

        assert resp.status_code == 200
        assert resp.get_json()["ok"] is True
        assert resp.get_json()["providers"] == ["did"]

    def test_unknown_route_uses_json_envelope(self, client):
        resp = client.get("/api/does-not-exist")
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "NOT_FOUND"
