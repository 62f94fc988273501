"""
Configuration module for the LaunchPilot reconciler.
Centralizes all environment variables and settings.

Supabase/Render Compatibility:
- Handles the legacy DATABASE_URL format (postgres:// -> postgresql://)
- Uses the platform PORT env var

Usage:
    from launchpilot.config import config

    if config.DID_CONFIGURED:
        print("D-ID polling enabled")

    conn_str = config.DATABASE_URL
"""

import os
from typing import Optional, List
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load .env file (safe - won't override existing env vars)
load_dotenv()


def _get_env(key: str, default: str = "") -> str:
    """Safely get and strip an environment variable."""
    return os.getenv(key, default).strip()


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get an environment variable as boolean."""
    val = _get_env(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    if val in ("false", "0", "no", "off"):
        return False
    return default


def _get_env_int(key: str, default: int = 0) -> int:
    """Get an environment variable as integer."""
    try:
        return int(_get_env(key, str(default)))
    except ValueError:
        return default


def _get_env_float(key: str, default: float = 0.0) -> float:
    """Get an environment variable as float."""
    try:
        return float(_get_env(key, str(default)))
    except ValueError:
        return default


def _get_env_list(key: str, default: List[str] = None) -> List[str]:
    """Get a comma-separated environment variable as list."""
    val = _get_env(key, "")
    if not val:
        return default or []
    return [item.strip() for item in val.split(",") if item.strip()]


def _fix_database_url(url: str) -> str:
    """
    Fix legacy DATABASE_URL format.
    Supabase and Render hand out 'postgres://' but psycopg3 requires 'postgresql://'.
    """
    if url and url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


@dataclass
class Config:
    """
    Application configuration with all settings.
    Loaded from environment variables with sensible defaults.
    """

    # ─────────────────────────────────────────────────────────────
    # Environment
    # ─────────────────────────────────────────────────────────────
    FLASK_ENV: str = field(default_factory=lambda: _get_env("FLASK_ENV", "production").lower())

    @property
    def IS_DEV(self) -> bool:
        """True if running in development mode."""
        return self.FLASK_ENV in ("development", "dev", "local")

    @property
    def IS_PROD(self) -> bool:
        """True if running in production mode."""
        return not self.IS_DEV

    # ─────────────────────────────────────────────────────────────
    # Server
    # ─────────────────────────────────────────────────────────────
    PORT: int = field(default_factory=lambda: _get_env_int("PORT", 5001))
    HOST: str = field(default_factory=lambda: _get_env("HOST", "0.0.0.0"))

    # ─────────────────────────────────────────────────────────────
    # Database
    # ─────────────────────────────────────────────────────────────
    _DATABASE_URL_RAW: str = field(default_factory=lambda: _get_env("DATABASE_URL"))

    @property
    def DATABASE_URL(self) -> str:
        """Database connection URL (fixed for psycopg3 compatibility)."""
        return _fix_database_url(self._DATABASE_URL_RAW)

    @property
    def HAS_DATABASE(self) -> bool:
        """True if database URL is configured."""
        return bool(self._DATABASE_URL_RAW)

    APP_SCHEMA: str = field(default_factory=lambda: _get_env("APP_SCHEMA", "launchpilot"))
    DB_CONNECT_TIMEOUT: int = field(default_factory=lambda: _get_env_int("DB_CONNECT_TIMEOUT", 10))

    # ─────────────────────────────────────────────────────────────
    # D-ID (talking-head videos)
    # ─────────────────────────────────────────────────────────────
    # Key is "username:password" from D-ID Studio account settings
    DID_API_KEY: str = field(default_factory=lambda: _get_env("DID_API_KEY"))
    DID_API_BASE: str = field(default_factory=lambda: _get_env("DID_API_BASE", "https://api.d-id.com").rstrip("/"))

    @property
    def DID_CONFIGURED(self) -> bool:
        """True if D-ID is configured."""
        return bool(self.DID_API_KEY)

    # ─────────────────────────────────────────────────────────────
    # Runway (promo clips)
    # ─────────────────────────────────────────────────────────────
    RUNWAY_API_KEY: str = field(default_factory=lambda: _get_env("RUNWAY_API_KEY") or _get_env("RUNWAYML_API_SECRET"))
    RUNWAY_API_BASE: str = field(
        default_factory=lambda: _get_env("RUNWAY_API_BASE", "https://api.dev.runwayml.com").rstrip("/")
    )
    RUNWAY_API_VERSION: str = field(default_factory=lambda: _get_env("RUNWAY_API_VERSION", "2024-11-06"))

    @property
    def RUNWAY_CONFIGURED(self) -> bool:
        """True if Runway is configured."""
        return bool(self.RUNWAY_API_KEY)

    # ─────────────────────────────────────────────────────────────
    # Vendor HTTP timeouts (seconds)
    # ─────────────────────────────────────────────────────────────
    VENDOR_CONNECT_TIMEOUT: float = field(default_factory=lambda: _get_env_float("VENDOR_CONNECT_TIMEOUT", 5.0))
    VENDOR_READ_TIMEOUT: float = field(default_factory=lambda: _get_env_float("VENDOR_READ_TIMEOUT", 15.0))

    @property
    def VENDOR_TIMEOUT(self) -> tuple:
        """(connect, read) tuple passed straight to requests."""
        return (self.VENDOR_CONNECT_TIMEOUT, self.VENDOR_READ_TIMEOUT)

    # ─────────────────────────────────────────────────────────────
    # Reconciler
    # ─────────────────────────────────────────────────────────────
    RECONCILE_MAX_WORKERS: int = field(default_factory=lambda: _get_env_int("RECONCILE_MAX_WORKERS", 4))
    RECONCILE_BATCH_LIMIT: int = field(default_factory=lambda: _get_env_int("RECONCILE_BATCH_LIMIT", 200))

    # 0 disables expiry: stuck jobs stay pending until the vendor answers
    PENDING_EXPIRY_MINUTES: int = field(default_factory=lambda: _get_env_int("PENDING_EXPIRY_MINUTES", 0))

    # Shared secret for the cron trigger (X-Cron-Token header or ?key=)
    RECONCILE_TOKEN: str = field(default_factory=lambda: _get_env("RECONCILE_TOKEN"))

    @property
    def RECONCILE_AUTH_REQUIRED(self) -> bool:
        return bool(self.RECONCILE_TOKEN)

    # ─────────────────────────────────────────────────────────────
    # CORS
    # ─────────────────────────────────────────────────────────────
    ALLOWED_ORIGINS: List[str] = field(default_factory=lambda: _get_env_list("ALLOWED_ORIGINS"))

    @property
    def ALLOW_ALL_ORIGINS(self) -> bool:
        """True if wildcard CORS is enabled."""
        return self.ALLOWED_ORIGINS == ["*"]

    # ─────────────────────────────────────────────────────────────
    # Logging & Debug
    # ─────────────────────────────────────────────────────────────
    def log_summary(self) -> None:
        """Print configuration summary for debugging."""
        print("=" * 60)
        print("[CONFIG] LaunchPilot Reconciler Configuration")
        print("=" * 60)
        print(f"  Environment: {self.FLASK_ENV} (IS_DEV={self.IS_DEV})")
        print(f"  Port: {self.PORT}")
        print("-" * 60)
        print(f"  Database configured: {self.HAS_DATABASE} (schema={self.APP_SCHEMA})")
        print(f"  D-ID configured: {self.DID_CONFIGURED}")
        print(f"  Runway configured: {self.RUNWAY_CONFIGURED}")
        print(f"  Vendor timeout: connect={self.VENDOR_CONNECT_TIMEOUT}s read={self.VENDOR_READ_TIMEOUT}s")
        print(f"  Reconcile workers: {self.RECONCILE_MAX_WORKERS} (batch limit {self.RECONCILE_BATCH_LIMIT})")
        expiry = f"{self.PENDING_EXPIRY_MINUTES} min" if self.PENDING_EXPIRY_MINUTES > 0 else "disabled"
        print(f"  Pending expiry: {expiry}")
        print(f"  Cron token required: {self.RECONCILE_AUTH_REQUIRED}")
        print("=" * 60)

    def validate(self) -> List[str]:
        """
        Validate configuration and return list of warnings.
        Returns empty list if all critical config is present.
        """
        warnings = []

        if not self.HAS_DATABASE:
            warnings.append("DATABASE_URL not set - reconciler cannot read jobs!")
        if not self.DID_CONFIGURED and not self.RUNWAY_CONFIGURED:
            warnings.append("Neither DID_API_KEY nor RUNWAY_API_KEY set - every lookup will be transient")
        if self.DID_API_KEY and ":" not in self.DID_API_KEY:
            warnings.append("DID_API_KEY should be in 'username:password' format")
        if self.RECONCILE_MAX_WORKERS < 1:
            warnings.append("RECONCILE_MAX_WORKERS < 1 - falling back to a single worker")
        if self.IS_PROD and not self.RECONCILE_AUTH_REQUIRED:
            warnings.append("RECONCILE_TOKEN not set - /api/poll-videos is open to anyone")

        return warnings

    def to_dict(self) -> dict:
        """Export safe configuration as dictionary (no secrets)."""
        return {
            "environment": self.FLASK_ENV,
            "is_dev": self.IS_DEV,
            "port": self.PORT,
            "has_database": self.HAS_DATABASE,
            "app_schema": self.APP_SCHEMA,
            "did_configured": self.DID_CONFIGURED,
            "runway_configured": self.RUNWAY_CONFIGURED,
            "reconcile_max_workers": self.RECONCILE_MAX_WORKERS,
            "reconcile_batch_limit": self.RECONCILE_BATCH_LIMIT,
            "pending_expiry_minutes": self.PENDING_EXPIRY_MINUTES,
        }


# ─────────────────────────────────────────────────────────────
# Singleton instance
# ─────────────────────────────────────────────────────────────
try:
    config = Config()
    print(f"[CONFIG] Loaded successfully (IS_DEV={config.IS_DEV})")
except Exception as e:
    print(f"[CONFIG] FATAL: Failed to load config: {repr(e)}")
    raise


def log_config():
    """Print config summary plus any validation warnings."""
    config.log_summary()
    for warning in config.validate():
        print(f"[CONFIG] WARNING: {warning}")
