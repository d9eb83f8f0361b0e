"""
Database migration utilities.

Uses Alembic as the authoritative schema manager for both SQLite (dev/test)
and PostgreSQL (production). The baseline revision under alembic/versions
is the single source of truth for the practice schema.

DB path resolution:
  1. DATABASE_URL env var      (full SQLAlchemy URL, used for Postgres)
  2. PRACTICE_DB_PATH env var  (SQLite file path)
  3. Default: /tmp/practice_gateway.db (SQLite)
"""

import logging
import os
import sqlite3
import stat
from pathlib import Path

logger = logging.getLogger(__name__)


def get_db_path() -> Path:
    """
    Get the path to the SQLite database file.

    Returns the path from PRACTICE_DB_PATH env var, or
    /tmp/practice_gateway.db by default.
    """
    db_path_env = os.getenv("PRACTICE_DB_PATH")
    if db_path_env:
        return Path(db_path_env)

    # Default to /tmp so the DB is never written inside the source tree.
    return Path("/tmp/practice_gateway.db")


def get_database_url() -> str:
    """
    Return the SQLAlchemy database URL for Alembic usage.

    Priority:
    1. DATABASE_URL environment variable (full URL, supports Postgres)
    2. PRACTICE_DB_PATH as a SQLite file path
    3. Default SQLite at /tmp/practice_gateway.db
    """
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    return f"sqlite:///{get_db_path()}"


def ensure_db_permissions_secure(db_path: Path):
    """
    Ensure database file has secure permissions (owner read/write only).

    Raises:
        PermissionError: If unable to set secure permissions
    """
    if not db_path.exists():
        return

    try:
        os.chmod(db_path, stat.S_IRUSR | stat.S_IWUSR)
    except OSError as e:
        raise PermissionError(f"Failed to set secure permissions on database: {e}")


def enable_wal_mode(conn: sqlite3.Connection):
    """Enable Write-Ahead Logging so readers do not block the single writer."""
    conn.execute("PRAGMA journal_mode=WAL")
    conn.commit()


def ensure_schema():
    """
    Ensure the database schema is at the latest Alembic revision.

    Runs ``alembic upgrade head`` programmatically so that both SQLite
    (dev/test) and PostgreSQL (production) go through the same migration
    path. For SQLite, WAL mode and secure file permissions are applied
    after migrations run.

    Idempotent; safe to call multiple times.
    """
    database_url = get_database_url()

    # __file__ is clinic_gateway/app/db/migrate.py → repo root is 3 levels up.
    repo_root = Path(__file__).parent.parent.parent.parent
    alembic_ini = repo_root / "alembic.ini"

    from alembic.config import Config
    from alembic import command as alembic_command

    alembic_cfg = Config(str(alembic_ini))
    alembic_cfg.set_main_option("script_location", str(repo_root / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", database_url)

    alembic_command.upgrade(alembic_cfg, "head")
    logger.info("Schema at head for %s", database_url.split("://", 1)[0])

    if database_url.startswith("sqlite"):
        db_path = get_db_path()
        conn = sqlite3.connect(db_path)
        try:
            enable_wal_mode(conn)
        finally:
            conn.close()
        ensure_db_permissions_secure(db_path)


def get_connection() -> sqlite3.Connection:
    """
    Get a SQLite database connection.

    Returns:
        SQLite connection with Row factory enabled.
        Only valid when running against a SQLite backend.
    """
    db_path = get_db_path()
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row  # Enable dict-like access
    return conn


def check_db_security() -> dict:
    """
    Check database security configuration.

    Returns:
        Dictionary with security check results
    """
    db_path = get_db_path()

    results = {
        "db_exists": db_path.exists(),
        "permissions_secure": False,
        "wal_enabled": False,
    }

    if not db_path.exists():
        return results

    try:
        mode = stat.S_IMODE(os.stat(db_path).st_mode)
        results["permissions_secure"] = (mode & (stat.S_IRGRP | stat.S_IROTH)) == 0
    except OSError as e:
        logger.warning("Could not stat database file: %s", e)

    conn = get_connection()
    try:
        cursor = conn.execute("PRAGMA journal_mode")
        results["wal_enabled"] = cursor.fetchone()[0].upper() == "WAL"
    except sqlite3.Error as e:
        logger.warning("Could not read journal mode: %s", e)
    finally:
        conn.close()

    return results
