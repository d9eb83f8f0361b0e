"""
Branding and configuration database operations.
"""

import json
import sqlite3
from typing import Any, Dict, List, Optional

from clinic_gateway.app.db.common import get_utc_timestamp, row_to_dict


def get_branding(conn: sqlite3.Connection, tenant_id: str) -> Optional[Dict[str, Any]]:
    cursor = conn.execute("SELECT * FROM branding WHERE tenant_id = ?", (tenant_id,))
    return row_to_dict(cursor.fetchone())


def upsert_branding(
    conn: sqlite3.Connection,
    tenant_id: str,
    logo_url: str,
    primary_color: str,
    secondary_color: str,
    user_id: str,
) -> None:
    timestamp = get_utc_timestamp()
    conn.execute(
        """
        INSERT INTO branding (
            tenant_id, logo_url, primary_color, secondary_color,
            created_by, updated_by, created_at_utc, updated_at_utc
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(tenant_id) DO UPDATE SET
            logo_url = excluded.logo_url,
            primary_color = excluded.primary_color,
            secondary_color = excluded.secondary_color,
            updated_by = excluded.updated_by,
            updated_at_utc = excluded.updated_at_utc
        """,
        (tenant_id, logo_url, primary_color, secondary_color, user_id, user_id, timestamp, timestamp),
    )
    conn.commit()


def _configuration_row(row: Optional[sqlite3.Row]) -> Optional[Dict[str, Any]]:
    out = row_to_dict(row)
    if out is None:
        return None
    out["value"] = json.loads(out.pop("value_json"))
    return out


def list_configurations(conn: sqlite3.Connection, tenant_id: str) -> List[Dict[str, Any]]:
    cursor = conn.execute(
        "SELECT * FROM configurations WHERE tenant_id = ? ORDER BY key ASC", (tenant_id,)
    )
    return [_configuration_row(row) for row in cursor.fetchall()]


def get_configuration(conn: sqlite3.Connection, tenant_id: str, key: str) -> Optional[Dict[str, Any]]:
    cursor = conn.execute(
        "SELECT * FROM configurations WHERE tenant_id = ? AND key = ?", (tenant_id, key)
    )
    return _configuration_row(cursor.fetchone())


def upsert_configuration(
    conn: sqlite3.Connection,
    tenant_id: str,
    key: str,
    value: Any,
    user_id: str,
    config_type: str = "dynamic",
) -> Dict[str, Any]:
    """Write a configuration value; every overwrite bumps its version."""
    conn.execute(
        """
        INSERT INTO configurations (
            tenant_id, key, value_json, type, version, updated_by, updated_at_utc
        ) VALUES (?, ?, ?, ?, 1, ?, ?)
        ON CONFLICT(tenant_id, key) DO UPDATE SET
            value_json = excluded.value_json,
            type = excluded.type,
            version = configurations.version + 1,
            updated_by = excluded.updated_by,
            updated_at_utc = excluded.updated_at_utc
        """,
        (tenant_id, key, json.dumps(value), config_type, user_id, get_utc_timestamp()),
    )
    conn.commit()
    return get_configuration(conn, tenant_id, key)
