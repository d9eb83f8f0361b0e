"""
Client and session record database operations.

Conventional tenant-scoped CRUD for clients, sessions, session notes,
homework, client goals and journal entries. Partial updates go through
build_update() with a per-table column allowlist so that tenant_id, ids and
created_* columns can never be rewritten by a caller.
"""

import json
import sqlite3
from typing import Any, Dict, List, Optional

from clinic_gateway.app.db.common import (
    build_update,
    dumps,
    generate_id,
    get_utc_timestamp,
    row_to_dict,
    rows_to_dicts,
)

CLIENT_COLUMNS = (
    "name",
    "email",
    "phone",
    "address",
    "date_of_birth",
    "emergency_contact",
    "risk_score",
)

SESSION_COLUMNS = (
    "therapist_id",
    "session_date",
    "duration_minutes",
    "session_type",
    "status",
    "notes",
)

HOMEWORK_COLUMNS = (
    "session_id",
    "note_id",
    "title",
    "description",
    "due_date",
    "status",
    "completion_notes",
    "completed_at",
)

JOURNAL_COLUMNS = ("title", "content", "session_date", "is_shared_with_practitioner")

GOAL_COLUMNS = (
    "emotional_mental",
    "physical",
    "social_relational",
    "spiritual",
    "environmental",
    "intellectual_occupational",
    "financial",
)


def _update_row(
    conn: sqlite3.Connection,
    table: str,
    tenant_id: str,
    row_id: str,
    fields: Dict[str, Any],
    allowed: tuple,
    updated_by: Optional[str],
) -> bool:
    clause, values = build_update(fields, allowed)
    assignments = "updated_by = ?, updated_at_utc = ?"
    if clause:
        assignments = f"{clause}, {assignments}"
    cursor = conn.execute(
        f"UPDATE {table} SET {assignments} WHERE id = ? AND tenant_id = ?",
        (*values, updated_by, get_utc_timestamp(), row_id, tenant_id),
    )
    conn.commit()
    return cursor.rowcount > 0


# ============================================================================
# CLIENT OPERATIONS
# ============================================================================


def create_client(
    conn: sqlite3.Connection, tenant_id: str, fields: Dict[str, Any], created_by: str
) -> Dict[str, Any]:
    client_id = generate_id()
    timestamp = get_utc_timestamp()

    conn.execute(
        """
        INSERT INTO clients (
            id, tenant_id, name, email, phone, address, date_of_birth,
            emergency_contact, risk_score, created_by, updated_by,
            created_at_utc, updated_at_utc
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            client_id,
            tenant_id,
            fields["name"],
            fields.get("email"),
            fields.get("phone"),
            fields.get("address"),
            fields.get("date_of_birth"),
            fields.get("emergency_contact"),
            fields.get("risk_score"),
            created_by,
            created_by,
            timestamp,
            timestamp,
        ),
    )
    conn.commit()
    return get_client(conn, tenant_id, client_id)


def get_client(conn: sqlite3.Connection, tenant_id: str, client_id: str) -> Optional[Dict[str, Any]]:
    cursor = conn.execute(
        "SELECT * FROM clients WHERE id = ? AND tenant_id = ?", (client_id, tenant_id)
    )
    return row_to_dict(cursor.fetchone())


def list_clients(conn: sqlite3.Connection, tenant_id: str) -> List[Dict[str, Any]]:
    cursor = conn.execute(
        """
        SELECT * FROM clients
        WHERE tenant_id = ?
        ORDER BY created_at_utc DESC, rowid DESC
        """,
        (tenant_id,),
    )
    return rows_to_dicts(cursor.fetchall())


def update_client(
    conn: sqlite3.Connection,
    tenant_id: str,
    client_id: str,
    fields: Dict[str, Any],
    updated_by: str,
) -> bool:
    return _update_row(conn, "clients", tenant_id, client_id, fields, CLIENT_COLUMNS, updated_by)


def delete_client(conn: sqlite3.Connection, tenant_id: str, client_id: str) -> bool:
    cursor = conn.execute(
        "DELETE FROM clients WHERE id = ? AND tenant_id = ?", (client_id, tenant_id)
    )
    conn.commit()
    return cursor.rowcount > 0


# ============================================================================
# SESSION OPERATIONS
# ============================================================================


def create_session(
    conn: sqlite3.Connection, tenant_id: str, fields: Dict[str, Any], created_by: str
) -> Dict[str, Any]:
    session_id = generate_id()
    timestamp = get_utc_timestamp()

    conn.execute(
        """
        INSERT INTO sessions (
            id, tenant_id, client_id, therapist_id, session_date,
            duration_minutes, session_type, status, notes,
            created_by, updated_by, created_at_utc, updated_at_utc
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            session_id,
            tenant_id,
            fields["client_id"],
            fields.get("therapist_id"),
            fields["session_date"],
            fields.get("duration_minutes"),
            fields["session_type"],
            fields.get("status") or "scheduled",
            fields.get("notes"),
            created_by,
            created_by,
            timestamp,
            timestamp,
        ),
    )
    conn.commit()
    return get_session(conn, tenant_id, session_id)


def get_session(conn: sqlite3.Connection, tenant_id: str, session_id: str) -> Optional[Dict[str, Any]]:
    cursor = conn.execute(
        "SELECT * FROM sessions WHERE id = ? AND tenant_id = ?", (session_id, tenant_id)
    )
    return row_to_dict(cursor.fetchone())


def list_sessions(
    conn: sqlite3.Connection, tenant_id: str, client_id: Optional[str] = None
) -> List[Dict[str, Any]]:
    """Sessions for the tenant (optionally one client), most recent date first."""
    if client_id:
        cursor = conn.execute(
            """
            SELECT * FROM sessions
            WHERE tenant_id = ? AND client_id = ?
            ORDER BY session_date DESC, rowid DESC
            """,
            (tenant_id, client_id),
        )
    else:
        cursor = conn.execute(
            """
            SELECT * FROM sessions
            WHERE tenant_id = ?
            ORDER BY session_date DESC, rowid DESC
            """,
            (tenant_id,),
        )
    return rows_to_dicts(cursor.fetchall())


def update_session(
    conn: sqlite3.Connection,
    tenant_id: str,
    session_id: str,
    fields: Dict[str, Any],
    updated_by: str,
) -> bool:
    return _update_row(conn, "sessions", tenant_id, session_id, fields, SESSION_COLUMNS, updated_by)


# ============================================================================
# SESSION NOTE OPERATIONS
# ============================================================================


def _note_row(row: Optional[sqlite3.Row]) -> Optional[Dict[str, Any]]:
    out = row_to_dict(row, bool_fields=("is_shared_with_client",))
    if out is None:
        return None
    out["content"] = json.loads(out.pop("content_json"))
    return out


def create_session_note(
    conn: sqlite3.Connection,
    tenant_id: str,
    session_id: str,
    client_id: str,
    template_type: str,
    content: Dict[str, str],
    created_by: str,
    practitioner_risk_rating: Optional[int] = None,
    is_shared_with_client: bool = False,
) -> Dict[str, Any]:
    note_id = generate_id()
    timestamp = get_utc_timestamp()

    conn.execute(
        """
        INSERT INTO session_notes (
            id, tenant_id, session_id, client_id, template_type, content_json,
            practitioner_risk_rating, is_shared_with_client,
            created_by, updated_by, created_at_utc, updated_at_utc
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            note_id,
            tenant_id,
            session_id,
            client_id,
            template_type,
            dumps(content),
            practitioner_risk_rating,
            int(is_shared_with_client),
            created_by,
            created_by,
            timestamp,
            timestamp,
        ),
    )
    conn.commit()
    return get_session_note(conn, tenant_id, note_id)


def get_session_note(conn: sqlite3.Connection, tenant_id: str, note_id: str) -> Optional[Dict[str, Any]]:
    cursor = conn.execute(
        "SELECT * FROM session_notes WHERE id = ? AND tenant_id = ?", (note_id, tenant_id)
    )
    return _note_row(cursor.fetchone())


def list_session_notes(conn: sqlite3.Connection, tenant_id: str, client_id: str) -> List[Dict[str, Any]]:
    cursor = conn.execute(
        """
        SELECT * FROM session_notes
        WHERE tenant_id = ? AND client_id = ?
        ORDER BY created_at_utc DESC, rowid DESC
        """,
        (tenant_id, client_id),
    )
    return [_note_row(row) for row in cursor.fetchall()]


def update_session_note(
    conn: sqlite3.Connection,
    tenant_id: str,
    note_id: str,
    fields: Dict[str, Any],
    updated_by: str,
) -> bool:
    fields = dict(fields)
    if "content" in fields:
        fields["content_json"] = dumps(fields.pop("content"))
    if "is_shared_with_client" in fields:
        fields["is_shared_with_client"] = int(fields["is_shared_with_client"])
    return _update_row(
        conn,
        "session_notes",
        tenant_id,
        note_id,
        fields,
        ("template_type", "content_json", "practitioner_risk_rating", "is_shared_with_client"),
        updated_by,
    )


# ============================================================================
# HOMEWORK OPERATIONS
# ============================================================================


def create_homework(
    conn: sqlite3.Connection, tenant_id: str, fields: Dict[str, Any], assigned_by: str
) -> Dict[str, Any]:
    homework_id = generate_id()
    timestamp = get_utc_timestamp()

    conn.execute(
        """
        INSERT INTO homework (
            id, tenant_id, client_id, session_id, note_id, title, description,
            assigned_date, due_date, status, assigned_by, updated_by,
            created_at_utc, updated_at_utc
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 'assigned', ?, ?, ?, ?)
        """,
        (
            homework_id,
            tenant_id,
            fields["client_id"],
            fields.get("session_id"),
            fields.get("note_id"),
            fields["title"],
            fields.get("description"),
            fields.get("assigned_date") or timestamp[:10],
            fields.get("due_date"),
            assigned_by,
            assigned_by,
            timestamp,
            timestamp,
        ),
    )
    conn.commit()
    return get_homework(conn, tenant_id, homework_id)


def get_homework(conn: sqlite3.Connection, tenant_id: str, homework_id: str) -> Optional[Dict[str, Any]]:
    cursor = conn.execute(
        "SELECT * FROM homework WHERE id = ? AND tenant_id = ?", (homework_id, tenant_id)
    )
    return row_to_dict(cursor.fetchone())


def list_homework(conn: sqlite3.Connection, tenant_id: str, client_id: str) -> List[Dict[str, Any]]:
    cursor = conn.execute(
        """
        SELECT * FROM homework
        WHERE tenant_id = ? AND client_id = ?
        ORDER BY assigned_date DESC, rowid DESC
        """,
        (tenant_id, client_id),
    )
    return rows_to_dicts(cursor.fetchall())


def update_homework(
    conn: sqlite3.Connection,
    tenant_id: str,
    homework_id: str,
    fields: Dict[str, Any],
    updated_by: str,
) -> bool:
    return _update_row(conn, "homework", tenant_id, homework_id, fields, HOMEWORK_COLUMNS, updated_by)


# ============================================================================
# CLIENT GOAL OPERATIONS
# ============================================================================


def get_client_goals(conn: sqlite3.Connection, tenant_id: str, client_id: str) -> Optional[Dict[str, Any]]:
    cursor = conn.execute(
        "SELECT * FROM client_goals WHERE tenant_id = ? AND client_id = ?",
        (tenant_id, client_id),
    )
    return row_to_dict(cursor.fetchone())


def upsert_client_goals(
    conn: sqlite3.Connection,
    tenant_id: str,
    client_id: str,
    goals: Dict[str, str],
    updated_by: str,
) -> Dict[str, Any]:
    """Write all seven goal dimensions for a client in one statement."""
    values = [goals.get(column) or "" for column in GOAL_COLUMNS]
    columns = ", ".join(GOAL_COLUMNS)
    placeholders = ", ".join("?" for _ in GOAL_COLUMNS)
    updates = ", ".join(f"{column} = excluded.{column}" for column in GOAL_COLUMNS)

    conn.execute(
        f"""
        INSERT INTO client_goals (
            tenant_id, client_id, {columns}, updated_by, updated_at_utc
        ) VALUES (?, ?, {placeholders}, ?, ?)
        ON CONFLICT(tenant_id, client_id) DO UPDATE SET
            {updates},
            updated_by = excluded.updated_by,
            updated_at_utc = excluded.updated_at_utc
        """,
        (tenant_id, client_id, *values, updated_by, get_utc_timestamp()),
    )
    conn.commit()
    return get_client_goals(conn, tenant_id, client_id)


# ============================================================================
# JOURNAL OPERATIONS
# ============================================================================


def create_journal_entry(
    conn: sqlite3.Connection, tenant_id: str, fields: Dict[str, Any], created_by: str
) -> Dict[str, Any]:
    entry_id = generate_id()
    timestamp = get_utc_timestamp()

    conn.execute(
        """
        INSERT INTO client_journal (
            id, tenant_id, client_id, title, content, session_date,
            is_shared_with_practitioner, created_by, updated_by,
            created_at_utc, updated_at_utc
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            entry_id,
            tenant_id,
            fields["client_id"],
            fields["title"],
            fields["content"],
            fields.get("session_date"),
            int(bool(fields.get("is_shared_with_practitioner"))),
            created_by,
            created_by,
            timestamp,
            timestamp,
        ),
    )
    conn.commit()
    return get_journal_entry(conn, tenant_id, entry_id)


def get_journal_entry(conn: sqlite3.Connection, tenant_id: str, entry_id: str) -> Optional[Dict[str, Any]]:
    cursor = conn.execute(
        "SELECT * FROM client_journal WHERE id = ? AND tenant_id = ?", (entry_id, tenant_id)
    )
    return row_to_dict(cursor.fetchone(), bool_fields=("is_shared_with_practitioner",))


def list_journal_entries(
    conn: sqlite3.Connection, tenant_id: str, client_id: Optional[str] = None
) -> List[Dict[str, Any]]:
    if client_id:
        cursor = conn.execute(
            """
            SELECT * FROM client_journal
            WHERE tenant_id = ? AND client_id = ?
            ORDER BY created_at_utc DESC, rowid DESC
            """,
            (tenant_id, client_id),
        )
    else:
        cursor = conn.execute(
            """
            SELECT * FROM client_journal
            WHERE tenant_id = ?
            ORDER BY created_at_utc DESC, rowid DESC
            """,
            (tenant_id,),
        )
    return rows_to_dicts(cursor.fetchall(), bool_fields=("is_shared_with_practitioner",))


def update_journal_entry(
    conn: sqlite3.Connection,
    tenant_id: str,
    entry_id: str,
    fields: Dict[str, Any],
    updated_by: str,
) -> bool:
    fields = dict(fields)
    if "is_shared_with_practitioner" in fields:
        fields["is_shared_with_practitioner"] = int(bool(fields["is_shared_with_practitioner"]))
    return _update_row(
        conn, "client_journal", tenant_id, entry_id, fields, JOURNAL_COLUMNS, updated_by
    )


def delete_journal_entry(conn: sqlite3.Connection, tenant_id: str, entry_id: str) -> bool:
    cursor = conn.execute(
        "DELETE FROM client_journal WHERE id = ? AND tenant_id = ?", (entry_id, tenant_id)
    )
    conn.commit()
    return cursor.rowcount > 0
