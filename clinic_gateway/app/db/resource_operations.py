"""
File index database operations: client learning resources and documents.

These tables only index objects; the bytes live in the object store under
the stored file_path.
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
# CLIENT RESOURCE OPERATIONS
# ============================================================================


def insert_resource(
    conn: sqlite3.Connection,
    tenant_id: str,
    client_id: str,
    resource_type: str,
    title: str,
    created_by: str,
    description: Optional[str] = None,
    url: Optional[str] = None,
    file_path: Optional[str] = None,
    file_size: Optional[int] = None,
    mime_type: Optional[str] = None,
) -> Dict[str, Any]:
    """Insert an active resource row and return it."""
    resource_id = generate_id()
    timestamp = get_utc_timestamp()

    conn.execute(
        """
        INSERT INTO client_resources (
            id, tenant_id, client_id, resource_type, title, description,
            url, file_path, file_size, mime_type, is_active,
            created_by, updated_by, created_at_utc, updated_at_utc
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 1, ?, ?, ?, ?)
        """,
        (
            resource_id,
            tenant_id,
            client_id,
            resource_type,
            title,
            description,
            url,
            file_path,
            file_size,
            mime_type,
            created_by,
            created_by,
            timestamp,
            timestamp,
        ),
    )
    conn.commit()
    return get_resource(conn, tenant_id, resource_id)


def get_resource(
    conn: sqlite3.Connection, tenant_id: str, resource_id: str
) -> Optional[Dict[str, Any]]:
    cursor = conn.execute(
        "SELECT * FROM client_resources WHERE id = ? AND tenant_id = ?",
        (resource_id, tenant_id),
    )
    return row_to_dict(cursor.fetchone(), bool_fields=("is_active",))


def get_active_resource_by_path(
    conn: sqlite3.Connection, tenant_id: str, file_path: str
) -> Optional[Dict[str, Any]]:
    cursor = conn.execute(
        """
        SELECT * FROM client_resources
        WHERE tenant_id = ? AND file_path = ? AND is_active = 1
        """,
        (tenant_id, file_path),
    )
    return row_to_dict(cursor.fetchone(), bool_fields=("is_active",))


def list_active_resources(
    conn: sqlite3.Connection, tenant_id: str, client_id: str
) -> List[Dict[str, Any]]:
    """Active resources for a client, newest first."""
    cursor = conn.execute(
        """
        SELECT * FROM client_resources
        WHERE tenant_id = ? AND client_id = ? AND is_active = 1
        ORDER BY created_at_utc DESC, rowid DESC
        """,
        (tenant_id, client_id),
    )
    return rows_to_dicts(cursor.fetchall(), bool_fields=("is_active",))


def deactivate_resource(
    conn: sqlite3.Connection, tenant_id: str, resource_id: str, updated_by: str
) -> bool:
    """Soft delete. Returns False when no row matched."""
    cursor = conn.execute(
        """
        UPDATE client_resources
        SET is_active = 0, updated_by = ?, updated_at_utc = ?
        WHERE id = ? AND tenant_id = ?
        """,
        (updated_by, get_utc_timestamp(), resource_id, tenant_id),
    )
    conn.commit()
    return cursor.rowcount > 0


# ============================================================================
# DOCUMENT OPERATIONS
# ============================================================================


def insert_document(
    conn: sqlite3.Connection,
    tenant_id: str,
    name: str,
    file_path: str,
    file_size: int,
    mime_type: Optional[str],
    document_type: str,
    uploaded_by: str,
    client_id: Optional[str] = None,
    is_shared_with_client: bool = False,
) -> Dict[str, Any]:
    document_id = generate_id()

    conn.execute(
        """
        INSERT INTO documents (
            id, tenant_id, client_id, name, file_path, file_size, mime_type,
            document_type, is_shared_with_client, uploaded_by, created_at_utc
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            document_id,
            tenant_id,
            client_id,
            name,
            file_path,
            file_size,
            mime_type,
            document_type,
            int(is_shared_with_client),
            uploaded_by,
            get_utc_timestamp(),
        ),
    )
    conn.commit()
    return get_document(conn, tenant_id, document_id)


def get_document(
    conn: sqlite3.Connection, tenant_id: str, document_id: str
) -> Optional[Dict[str, Any]]:
    cursor = conn.execute(
        "SELECT * FROM documents WHERE id = ? AND tenant_id = ?",
        (document_id, tenant_id),
    )
    return row_to_dict(cursor.fetchone(), bool_fields=("is_shared_with_client",))


def get_document_by_path(
    conn: sqlite3.Connection, tenant_id: str, file_path: str
) -> Optional[Dict[str, Any]]:
    cursor = conn.execute(
        "SELECT * FROM documents WHERE tenant_id = ? AND file_path = ?",
        (tenant_id, file_path),
    )
    return row_to_dict(cursor.fetchone(), bool_fields=("is_shared_with_client",))


def list_documents(
    conn: sqlite3.Connection, tenant_id: str, client_id: Optional[str] = None
) -> List[Dict[str, Any]]:
    """Documents for the tenant (optionally one client), newest first."""
    if client_id:
        cursor = conn.execute(
            """
            SELECT * FROM documents
            WHERE tenant_id = ? AND client_id = ?
            ORDER BY created_at_utc DESC, rowid DESC
            """,
            (tenant_id, client_id),
        )
    else:
        cursor = conn.execute(
            """
            SELECT * FROM documents
            WHERE tenant_id = ?
            ORDER BY created_at_utc DESC, rowid DESC
            """,
            (tenant_id,),
        )
    return rows_to_dicts(cursor.fetchall(), bool_fields=("is_shared_with_client",))


def delete_document(conn: sqlite3.Connection, tenant_id: str, document_id: str) -> bool:
    """Hard delete. Returns False when no row matched."""
    cursor = conn.execute(
        "DELETE FROM documents WHERE id = ? AND tenant_id = ?",
        (document_id, tenant_id),
    )
    conn.commit()
    return cursor.rowcount > 0
