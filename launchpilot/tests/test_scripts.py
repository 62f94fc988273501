"""Tests for the cron-facing command line scripts."""

import importlib.util
import json
import os

import pytest

from launchpilot.services import reconciliation_service
from launchpilot.services.reconciliation_service import ReconcileSummary, ReconciliationError

SCRIPTS_DIR = os.path.join(os.path.dirname(__file__), "..", "..", "scripts")


def _load_script(name):
    path = os.path.join(SCRIPTS_DIR, f"{name}.py")
    spec = importlib.util.spec_from_file_location(name, path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def poll_script():
    return _load_script("poll_pending_videos")


class StubReconciler:
    summary = None
    error = None
    init_kwargs = None

    def __init__(self, **kwargs):
        StubReconciler.init_kwargs = kwargs

    def reconcile_pending_jobs(self, cancel_event=None):
        if StubReconciler.error:
            raise StubReconciler.error
        return StubReconciler.summary


@pytest.fixture
def stub(monkeypatch):
    StubReconciler.summary = ReconcileSummary(started_at="2026-10-18T12:00:00+00:00", candidates=2, completed=2)
    StubReconciler.error = None
    monkeypatch.setattr(reconciliation_service, "JobReconciler", StubReconciler)
    return StubReconciler


def test_success_exit_code(poll_script, stub, capsys):
    assert poll_script.main(["--workers", "3", "--limit", "10", "--expiry-minutes", "30"]) == 0
    assert stub.init_kwargs == {"max_workers": 3, "batch_limit": 10, "expiry_minutes": 30}
    assert "Completed:        2" in capsys.readouterr().out


def test_json_output(poll_script, stub, capsys):
    assert poll_script.main(["--json"]) == 0
    last_line = capsys.readouterr().out.strip().splitlines()[-1]
    assert json.loads(last_line)["completed"] == 2


def test_write_errors_exit_1(poll_script, stub):
    stub.summary.write_errors = 1
    assert poll_script.main([]) == 1


def test_read_failure_exit_2(poll_script, stub):
    stub.error = ReconciliationError("Failed to read pending jobs: boom")
    assert poll_script.main([]) == 2


def test_cancelled_exit_130(poll_script, stub):
    stub.summary.cancelled = True
    assert poll_script.main([]) == 130


def test_bad_workers_rejected(poll_script, stub):
    assert poll_script.main(["--workers", "0"]) == 1


def test_schema_dry_run(capsys):
    script = _load_script("ensure_jobs_schema")
    assert script.main(["--dry-run"]) == 0
    out = capsys.readouterr().out
    assert "ADD COLUMN IF NOT EXISTS provider_task_id" in out


def test_verbose_listing_strips_presigned_query(poll_script, stub, capsys):
    stub.summary.results = [{
        "job_id": "J1",
        "provider": "did",
        "outcome": "completed",
        "video_url": "https://d-id-talks.s3.amazonaws.com/tlk_abc.mp4?X-Amz-Signature=deadbeef",
    }]

    assert poll_script.main(["--verbose"]) == 0

    out = capsys.readouterr().out
    assert "d-id-talks.s3.amazonaws.com/tlk_abc.mp4" in out
    assert "X-Amz-Signature" not in out
