"""
Database utilities for the LaunchPilot reconciler.
Provides connection management and common query helpers.

All functions raise meaningful exceptions on failure - no silent failures.

Usage:
    from launchpilot.db import get_conn, transaction, fetch_one, fetch_all, now_utc

    # Simple query
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM jobs WHERE id = %s", (job_id,))
            job = fetch_one(cur)

    # Transaction with automatic commit/rollback
    with transaction() as cur:
        cur.execute("UPDATE jobs SET status = 'complete' WHERE id = %s", (job_id,))
"""

from contextlib import contextmanager
from typing import Optional, Any, Dict, List
from datetime import datetime, timezone

import psycopg
from psycopg.rows import dict_row

from launchpilot.config import config


# ─────────────────────────────────────────────────────────────
# Custom Exceptions
# ─────────────────────────────────────────────────────────────
class DatabaseError(Exception):
    """Base exception for database errors."""
    pass


class DatabaseNotConfiguredError(DatabaseError):
    """Raised when database is not configured but an operation requires it."""
    def __init__(self, message: str = "Database is not configured"):
        super().__init__(message)


class DatabaseConnectionError(DatabaseError):
    """Raised when unable to connect to the database."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error


class DatabaseQueryError(DatabaseError):
    """Raised when a query fails."""
    def __init__(self, message: str, query: str = None, original_error: Exception = None):
        super().__init__(message)
        self.query = query
        self.original_error = original_error


class DatabaseIntegrityError(DatabaseError):
    """Raised on constraint violations (unique, foreign key, etc.)."""
    def __init__(self, message: str, constraint: str = None, original_error: Exception = None):
        super().__init__(message)
        self.constraint = constraint
        self.original_error = original_error


# ─────────────────────────────────────────────────────────────
# Connection State
# ─────────────────────────────────────────────────────────────
USE_DB = config.HAS_DATABASE

print(f"[DB] DATABASE_URL configured: {USE_DB}")


# ─────────────────────────────────────────────────────────────
# Time Helpers
# ─────────────────────────────────────────────────────────────
def now_utc() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


# ─────────────────────────────────────────────────────────────
# Connection Management
# ─────────────────────────────────────────────────────────────
def _create_connection():
    """
    Create a new database connection.
    Internal function - raises exceptions on failure.
    """
    if not config.DATABASE_URL:
        raise DatabaseNotConfiguredError("DATABASE_URL is not set")

    try:
        conn = psycopg.connect(
            config.DATABASE_URL,
            connect_timeout=config.DB_CONNECT_TIMEOUT,
            row_factory=dict_row,
        )
        with conn.cursor() as cur:
            cur.execute(f"SET search_path TO {config.APP_SCHEMA}, public;")
        return conn
    except psycopg.OperationalError as e:
        raise DatabaseConnectionError(f"Failed to connect to database: {e}", original_error=e)
    except Exception as e:
        raise DatabaseConnectionError(f"Unexpected error connecting to database: {e}", original_error=e)


@contextmanager
def get_conn():
    """
    Context manager for database connections.
    Connection is NOT auto-committed - caller must commit explicitly or use transaction().

    Raises:
        DatabaseNotConfiguredError: If database is not configured
        DatabaseConnectionError: If connection fails
    """
    conn = _create_connection()
    try:
        yield conn
    finally:
        try:
            conn.close()
        except Exception:
            pass


@contextmanager
def transaction():
    """
    Context manager for database transactions.
    Automatically commits on success, rolls back on exception.
    Yields a cursor with dict_row factory.

    Raises:
        DatabaseNotConfiguredError: If database is not configured
        DatabaseConnectionError: If connection fails
        DatabaseQueryError: If a query fails
        DatabaseIntegrityError: On constraint violations
    """
    conn = _create_connection()
    try:
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except psycopg.errors.UniqueViolation as e:
        conn.rollback()
        constraint = getattr(e.diag, "constraint_name", None)
        raise DatabaseIntegrityError(
            f"Unique constraint violation: {e}",
            constraint=constraint,
            original_error=e
        )
    except psycopg.errors.CheckViolation as e:
        conn.rollback()
        constraint = getattr(e.diag, "constraint_name", None)
        raise DatabaseIntegrityError(
            f"Check constraint violation: {e}",
            constraint=constraint,
            original_error=e
        )
    except psycopg.Error as e:
        conn.rollback()
        raise DatabaseQueryError(f"Database error: {e}", original_error=e)
    except Exception:
        conn.rollback()
        raise
    finally:
        try:
            conn.close()
        except Exception:
            pass


# ─────────────────────────────────────────────────────────────
# Cursor Helpers (for use within transaction/get_conn blocks)
# ─────────────────────────────────────────────────────────────
def fetch_one(cur) -> Optional[Dict[str, Any]]:
    """
    Fetch one row from cursor as dict.
    Returns None if no rows available.
    """
    row = cur.fetchone()
    if row is None:
        return None
    if isinstance(row, dict):
        return row
    if cur.description:
        columns = [desc[0] for desc in cur.description]
        return dict(zip(columns, row))
    return None


def fetch_all(cur) -> List[Dict[str, Any]]:
    """
    Fetch all rows from cursor as list of dicts.
    Returns empty list if no rows.
    """
    rows = cur.fetchall()
    if not rows:
        return []
    if isinstance(rows[0], dict):
        return list(rows)
    if cur.description:
        columns = [desc[0] for desc in cur.description]
        return [dict(zip(columns, row)) for row in rows]
    return []


# ─────────────────────────────────────────────────────────────
# Schema-aware Table References
# ─────────────────────────────────────────────────────────────
class Tables:
    """Table name constants with schema prefixes."""
    JOBS = f"{config.APP_SCHEMA}.jobs"


# ─────────────────────────────────────────────────────────────
# Utility Functions
# ─────────────────────────────────────────────────────────────
def require_db():
    """
    Assert that database is available.
    Raises DatabaseNotConfiguredError if not.
    """
    if not USE_DB:
        raise DatabaseNotConfiguredError(
            "This operation requires a database connection. "
            "Please configure DATABASE_URL environment variable."
        )


# Columns the reconciler relies on. Older deployments created the table
# before provider/provider_task_id/error_message existed.
JOB_COLUMNS = (
    ("business_name", "TEXT"),
    ("created_at", "TIMESTAMPTZ NOT NULL DEFAULT NOW()"),
    ("updated_at", "TIMESTAMPTZ NOT NULL DEFAULT NOW()"),
    ("status", "TEXT NOT NULL DEFAULT 'pending'"),
    ("provider", "TEXT"),
    ("provider_task_id", "TEXT"),
    ("video_url", "TEXT"),
    ("error_message", "TEXT"),
)


def ensure_schema() -> List[str]:
    """
    Ensure the jobs table and every column the reconciler needs exist.
    Idempotent: safe to run on every deploy.

    Returns the list of statements executed.

    Raises:
        DatabaseError: On any database error
    """
    require_db()
    statements = [
        f"CREATE SCHEMA IF NOT EXISTS {config.APP_SCHEMA}",
        f"CREATE TABLE IF NOT EXISTS {Tables.JOBS} (id TEXT PRIMARY KEY)",
    ]
    for column, ddl in JOB_COLUMNS:
        statements.append(f"ALTER TABLE {Tables.JOBS} ADD COLUMN IF NOT EXISTS {column} {ddl}")
    statements.append(
        f"""
        CREATE INDEX IF NOT EXISTS idx_jobs_pending_created
        ON {Tables.JOBS} (created_at)
        WHERE status = 'pending'
        """
    )

    with transaction() as cur:
        for stmt in statements:
            cur.execute(stmt)

    print(f"[DB] Schema ensured for {Tables.JOBS} ({len(statements)} statements)")
    return statements


__all__ = [
    "dict_row",
    "USE_DB",
    "DatabaseError",
    "DatabaseNotConfiguredError",
    "DatabaseConnectionError",
    "DatabaseQueryError",
    "DatabaseIntegrityError",
    "get_conn",
    "transaction",
    "now_utc",
    "fetch_one",
    "fetch_all",
    "Tables",
    "JOB_COLUMNS",
    "require_db",
    "ensure_schema",
]
