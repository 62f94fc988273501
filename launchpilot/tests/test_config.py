"""Tests for environment-driven configuration."""

from launchpilot.config import Config, _fix_database_url


def test_defaults(monkeypatch):
    for key in (
        "DATABASE_URL", "DID_API_KEY", "RUNWAY_API_KEY", "RUNWAYML_API_SECRET",
        "RECONCILE_TOKEN", "RECONCILE_MAX_WORKERS", "PENDING_EXPIRY_MINUTES",
        "VENDOR_CONNECT_TIMEOUT", "VENDOR_READ_TIMEOUT", "ALLOWED_ORIGINS",
    ):
        monkeypatch.delenv(key, raising=False)

    cfg = Config()

    assert cfg.HAS_DATABASE is False
    assert cfg.DID_CONFIGURED is False
    assert cfg.RUNWAY_CONFIGURED is False
    assert cfg.RECONCILE_MAX_WORKERS == 4
    assert cfg.PENDING_EXPIRY_MINUTES == 0
    assert cfg.VENDOR_TIMEOUT == (5.0, 15.0)
    assert cfg.RECONCILE_AUTH_REQUIRED is False
    assert cfg.ALLOW_ALL_ORIGINS is False


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db.example.com:5432/app")
    monkeypatch.setenv("DID_API_KEY", " user:pass ")
    monkeypatch.setenv("RUNWAYML_API_SECRET", "rw_secret")
    monkeypatch.delenv("RUNWAY_API_KEY", raising=False)
    monkeypatch.setenv("RECONCILE_MAX_WORKERS", "8")
    monkeypatch.setenv("VENDOR_READ_TIMEOUT", "3.5")
    monkeypatch.setenv("RECONCILE_TOKEN", "s3cret")
    monkeypatch.setenv("ALLOWED_ORIGINS", "*")

    cfg = Config()

    assert cfg.DATABASE_URL.startswith("postgresql://")
    assert cfg.DID_API_KEY == "user:pass"
    assert cfg.RUNWAY_API_KEY == "rw_secret"
    assert cfg.RECONCILE_MAX_WORKERS == 8
    assert cfg.VENDOR_READ_TIMEOUT == 3.5
    assert cfg.RECONCILE_AUTH_REQUIRED is True
    assert cfg.ALLOW_ALL_ORIGINS is True


def test_bad_numbers_fall_back(monkeypatch):
    monkeypatch.setenv("RECONCILE_MAX_WORKERS", "lots")
    monkeypatch.setenv("VENDOR_CONNECT_TIMEOUT", "soon")

    cfg = Config()

    assert cfg.RECONCILE_MAX_WORKERS == 4
    assert cfg.VENDOR_CONNECT_TIMEOUT == 5.0


def test_validate_warnings(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("DID_API_KEY", "no-colon")
    monkeypatch.delenv("RECONCILE_TOKEN", raising=False)
    monkeypatch.setenv("FLASK_ENV", "production")

    warnings = Config().validate()

    assert any("DATABASE_URL" in w for w in warnings)
    assert any("username:password" in w for w in warnings)
    assert any("RECONCILE_TOKEN" in w for w in warnings)


def test_to_dict_has_no_secrets(monkeypatch):
    monkeypatch.setenv("DID_API_KEY", "user:pass")
    monkeypatch.setenv("RECONCILE_TOKEN", "s3cret")

    exported = Config().to_dict()

    assert "user:pass" not in exported.values()
    assert "s3cret" not in exported.values()
    assert exported["did_configured"] is True


def test_fix_database_url():
    assert _fix_database_url("postgres://x") == "postgresql://x"
    assert _fix_database_url("postgresql://x") == "postgresql://x"
    assert _fix_database_url("") == ""
