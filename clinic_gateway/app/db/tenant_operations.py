"""
Tenant registry and identity database operations.

Covers the tenants, users and tenant_users tables. Functions take an open
connection and commit their own writes, matching the other *_operations
modules. Inserts take commit=False so a caller can batch them into one
transaction.
"""

import sqlite3
from typing import Any, Dict, List, Optional

from clinic_gateway.app.db.common import (
    generate_id,
    get_utc_timestamp,
    row_to_dict,
    rows_to_dicts,
)


# ============================================================================
# TENANT OPERATIONS
# ============================================================================


def create_tenant(
    conn: sqlite3.Connection,
    practice_name: str,
    status: str = "active",
    tenant_id: Optional[str] = None,
    commit: bool = True,
) -> str:
    """Create a new tenant and return its id."""
    tenant_id = tenant_id or generate_id()
    timestamp = get_utc_timestamp()

    conn.execute(
        """
        INSERT INTO tenants (
            tenant_id, practice_name, status, created_at_utc, updated_at_utc
        ) VALUES (?, ?, ?, ?, ?)
        """,
        (tenant_id, practice_name, status, timestamp, timestamp),
    )
    if commit:
        conn.commit()
    return tenant_id


def upsert_tenant(conn: sqlite3.Connection, tenant_id: str, practice_name: str) -> None:
    """Insert the tenant if it is missing; keep the existing row otherwise."""
    timestamp = get_utc_timestamp()
    conn.execute(
        """
        INSERT INTO tenants (
            tenant_id, practice_name, status, created_at_utc, updated_at_utc
        ) VALUES (?, ?, 'active', ?, ?)
        ON CONFLICT(tenant_id) DO NOTHING
        """,
        (tenant_id, practice_name, timestamp, timestamp),
    )
    conn.commit()


def get_tenant(conn: sqlite3.Connection, tenant_id: str) -> Optional[Dict[str, Any]]:
    """Get tenant by ID."""
    cursor = conn.execute("SELECT * FROM tenants WHERE tenant_id = ?", (tenant_id,))
    return row_to_dict(cursor.fetchone())


def list_tenants(conn: sqlite3.Connection) -> List[Dict[str, Any]]:
    """List all tenants, newest first."""
    cursor = conn.execute(
        "SELECT * FROM tenants ORDER BY created_at_utc DESC, rowid DESC"
    )
    return rows_to_dicts(cursor.fetchall())


def update_tenant_status(conn: sqlite3.Connection, tenant_id: str, status: str) -> bool:
    """Set tenant status. Returns False when the tenant does not exist."""
    cursor = conn.execute(
        "UPDATE tenants SET status = ?, updated_at_utc = ? WHERE tenant_id = ?",
        (status, get_utc_timestamp(), tenant_id),
    )
    conn.commit()
    return cursor.rowcount > 0


# ============================================================================
# USER OPERATIONS
# ============================================================================


def create_user(
    conn: sqlite3.Connection,
    email: str,
    first_name: Optional[str],
    last_name: Optional[str],
    password_hash: Optional[str] = None,
    commit: bool = True,
) -> str:
    """
    Register a new user identity and return its id.

    Raises:
        sqlite3.IntegrityError: if the email is already registered
    """
    user_id = generate_id()
    timestamp = get_utc_timestamp()

    conn.execute(
        """
        INSERT INTO users (
            user_id, email, first_name, last_name, password_hash,
            email_verified, created_at_utc, updated_at_utc
        ) VALUES (?, ?, ?, ?, ?, 0, ?, ?)
        """,
        (user_id, email.lower(), first_name, last_name, password_hash, timestamp, timestamp),
    )
    if commit:
        conn.commit()
    return user_id


def get_user(conn: sqlite3.Connection, user_id: str) -> Optional[Dict[str, Any]]:
    cursor = conn.execute("SELECT * FROM users WHERE user_id = ?", (user_id,))
    return row_to_dict(cursor.fetchone(), bool_fields=("email_verified",))


def get_user_by_email(conn: sqlite3.Connection, email: str) -> Optional[Dict[str, Any]]:
    """Look up a user by email (emails are stored lower-cased)."""
    cursor = conn.execute("SELECT * FROM users WHERE email = ?", (email.lower(),))
    return row_to_dict(cursor.fetchone(), bool_fields=("email_verified",))


def mark_email_verified(conn: sqlite3.Connection, user_id: str) -> bool:
    cursor = conn.execute(
        "UPDATE users SET email_verified = 1, updated_at_utc = ? WHERE user_id = ?",
        (get_utc_timestamp(), user_id),
    )
    conn.commit()
    return cursor.rowcount > 0


# ============================================================================
# TENANT MEMBERSHIP OPERATIONS
# ============================================================================


def upsert_tenant_user(
    conn: sqlite3.Connection,
    user_id: str,
    tenant_id: str,
    role: str,
    created_by: Optional[str],
    commit: bool = True,
) -> None:
    """Create the user's association with a tenant, or update its role."""
    timestamp = get_utc_timestamp()
    conn.execute(
        """
        INSERT INTO tenant_users (
            user_id, tenant_id, role, created_by, created_at_utc, updated_at_utc
        ) VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT(user_id, tenant_id) DO UPDATE SET
            role = excluded.role,
            updated_at_utc = excluded.updated_at_utc
        """,
        (user_id, tenant_id, role, created_by, timestamp, timestamp),
    )
    if commit:
        conn.commit()


def get_tenant_user(
    conn: sqlite3.Connection, user_id: str, tenant_id: str
) -> Optional[Dict[str, Any]]:
    """Get a user's profile joined with their role in the tenant."""
    cursor = conn.execute(
        """
        SELECT u.user_id, u.email, u.first_name, u.last_name, u.email_verified,
               tu.role, tu.tenant_id, tu.created_at_utc
        FROM tenant_users tu
        JOIN users u ON u.user_id = tu.user_id
        WHERE tu.user_id = ? AND tu.tenant_id = ?
        """,
        (user_id, tenant_id),
    )
    return row_to_dict(cursor.fetchone(), bool_fields=("email_verified",))


def get_memberships(conn: sqlite3.Connection, user_id: str) -> List[Dict[str, Any]]:
    """List a user's tenant associations, oldest first."""
    cursor = conn.execute(
        """
        SELECT tenant_id, role
        FROM tenant_users
        WHERE user_id = ?
        ORDER BY created_at_utc ASC
        """,
        (user_id,),
    )
    return rows_to_dicts(cursor.fetchall())


def get_tenant_users(conn: sqlite3.Connection, tenant_id: str) -> List[Dict[str, Any]]:
    """List the users of a tenant with their tenant role."""
    cursor = conn.execute(
        """
        SELECT u.user_id, u.email, u.first_name, u.last_name, u.email_verified,
               tu.role, tu.tenant_id, tu.created_at_utc
        FROM tenant_users tu
        JOIN users u ON u.user_id = tu.user_id
        WHERE tu.tenant_id = ?
        ORDER BY tu.created_at_utc ASC, u.email ASC
        """,
        (tenant_id,),
    )
    return rows_to_dicts(cursor.fetchall(), bool_fields=("email_verified",))
