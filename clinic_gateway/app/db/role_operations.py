"""
Role and page-permission database operations.

Every query is filtered on tenant_id. A role or permission row that belongs
to another tenant is indistinguishable from a missing one.
"""

import json
import sqlite3
from typing import Any, Dict, List, Optional

from clinic_gateway.app.db.common import (
    dumps,
    generate_id,
    get_utc_timestamp,
    row_to_dict,
    rows_to_dicts,
)


# ============================================================================
# ROLE OPERATIONS
# ============================================================================


def create_role(
    conn: sqlite3.Connection,
    tenant_id: str,
    role_name: str,
    role_description: Optional[str],
    created_by: Optional[str],
    is_default: bool = False,
) -> str:
    """
    Insert a custom role.

    Raises:
        sqlite3.IntegrityError: if (tenant_id, role_name) already exists
    """
    role_id = generate_id()
    timestamp = get_utc_timestamp()

    conn.execute(
        """
        INSERT INTO user_roles (
            id, tenant_id, role_name, role_description, is_default,
            created_by, created_at_utc, updated_at_utc
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            role_id,
            tenant_id,
            role_name,
            role_description,
            int(is_default),
            created_by,
            timestamp,
            timestamp,
        ),
    )
    conn.commit()
    return role_id


def get_role(conn: sqlite3.Connection, tenant_id: str, role_id: str) -> Optional[Dict[str, Any]]:
    cursor = conn.execute(
        "SELECT * FROM user_roles WHERE id = ? AND tenant_id = ?",
        (role_id, tenant_id),
    )
    return row_to_dict(cursor.fetchone(), bool_fields=("is_default",))


def find_role_by_name(
    conn: sqlite3.Connection, tenant_id: str, role_name: str
) -> Optional[Dict[str, Any]]:
    """Exact, case-sensitive name lookup within a tenant."""
    cursor = conn.execute(
        "SELECT * FROM user_roles WHERE tenant_id = ? AND role_name = ?",
        (tenant_id, role_name),
    )
    return row_to_dict(cursor.fetchone(), bool_fields=("is_default",))


def list_roles(conn: sqlite3.Connection, tenant_id: str) -> List[Dict[str, Any]]:
    cursor = conn.execute(
        "SELECT * FROM user_roles WHERE tenant_id = ? ORDER BY role_name ASC",
        (tenant_id,),
    )
    return rows_to_dicts(cursor.fetchall(), bool_fields=("is_default",))


def rename_role(conn: sqlite3.Connection, tenant_id: str, role_id: str, role_name: str) -> bool:
    """
    Rename a role. Returns False when no row matched.

    Raises:
        sqlite3.IntegrityError: if the new name collides with another role
    """
    cursor = conn.execute(
        """
        UPDATE user_roles
        SET role_name = ?, updated_at_utc = ?
        WHERE id = ? AND tenant_id = ?
        """,
        (role_name, get_utc_timestamp(), role_id, tenant_id),
    )
    conn.commit()
    return cursor.rowcount > 0


def delete_role(conn: sqlite3.Connection, tenant_id: str, role_id: str) -> bool:
    """Delete the role row only; assignments and permissions are untouched."""
    cursor = conn.execute(
        "DELETE FROM user_roles WHERE id = ? AND tenant_id = ?",
        (role_id, tenant_id),
    )
    conn.commit()
    return cursor.rowcount > 0


# ============================================================================
# PAGE PERMISSION OPERATIONS
# ============================================================================


def _permission_row(row: Optional[sqlite3.Row]) -> Optional[Dict[str, Any]]:
    out = row_to_dict(row)
    if out is None:
        return None
    out["roles"] = json.loads(out.pop("roles_json") or "[]")
    return out


def create_page_permission(
    conn: sqlite3.Connection,
    tenant_id: str,
    page_path: str,
    page_name: str,
    roles: List[str],
    component_name: Optional[str] = None,
    updated_by: Optional[str] = None,
    commit: bool = True,
) -> str:
    permission_id = generate_id()
    timestamp = get_utc_timestamp()

    conn.execute(
        """
        INSERT INTO page_permissions (
            id, tenant_id, page_path, page_name, component_name,
            roles_json, updated_by, created_at_utc, updated_at_utc
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            permission_id,
            tenant_id,
            page_path,
            page_name,
            component_name,
            dumps(list(roles)),
            updated_by,
            timestamp,
            timestamp,
        ),
    )
    if commit:
        conn.commit()
    return permission_id


def get_page_permission(
    conn: sqlite3.Connection, tenant_id: str, permission_id: str
) -> Optional[Dict[str, Any]]:
    cursor = conn.execute(
        "SELECT * FROM page_permissions WHERE id = ? AND tenant_id = ?",
        (permission_id, tenant_id),
    )
    return _permission_row(cursor.fetchone())


def list_page_permissions(conn: sqlite3.Connection, tenant_id: str) -> List[Dict[str, Any]]:
    cursor = conn.execute(
        """
        SELECT * FROM page_permissions
        WHERE tenant_id = ?
        ORDER BY page_path ASC, component_name ASC
        """,
        (tenant_id,),
    )
    return [_permission_row(row) for row in cursor.fetchall()]


def set_page_roles(
    conn: sqlite3.Connection,
    tenant_id: str,
    permission_id: str,
    roles: List[str],
    updated_by: Optional[str],
) -> bool:
    """Replace a page's allowed roles. Returns False when no row matched."""
    cursor = conn.execute(
        """
        UPDATE page_permissions
        SET roles_json = ?, updated_by = ?, updated_at_utc = ?
        WHERE id = ? AND tenant_id = ?
        """,
        (dumps(list(roles)), updated_by, get_utc_timestamp(), permission_id, tenant_id),
    )
    conn.commit()
    return cursor.rowcount > 0
