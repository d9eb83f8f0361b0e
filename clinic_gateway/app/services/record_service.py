"""
Client and session record service.

Tenant-scoped CRUD for clients, sessions, session notes, homework, client
goals and journal entries. Input checks raise ValidationError before the
database is opened; everything after that is folded into a ServiceResult.
Rows referenced by id (client, session) must belong to the caller's tenant,
otherwise the result carries NotFoundError.
"""

import logging
from typing import Any, Dict, Optional

from clinic_gateway.app.db import record_operations
from clinic_gateway.app.db.common import get_utc_timestamp
from clinic_gateway.app.db.migrate import get_connection
from clinic_gateway.app.errors import NotFoundError, ValidationError
from clinic_gateway.app.services import note_templates
from clinic_gateway.app.services.results import ServiceResult, capture

logger = logging.getLogger(__name__)

SESSION_STATUSES = ("scheduled", "completed", "cancelled", "no_show")
HOMEWORK_STATUSES = ("assigned", "in_progress", "completed")


def _required(fields: Dict[str, Any], key: str, label: str) -> str:
    value = fields.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required")
    return value.strip()


def _check_choice(fields: Dict[str, Any], key: str, choices: tuple) -> None:
    if key in fields and fields[key] is not None and fields[key] not in choices:
        raise ValidationError(f"{key} must be one of {list(choices)}")


def _require_client(conn, tenant_id: str, client_id: str) -> None:
    if not record_operations.get_client(conn, tenant_id, client_id):
        raise NotFoundError("Client not found")


def _run(operation: str, func, default: Any = None) -> ServiceResult:
    """Open a connection, run ``func(conn)`` and fold the outcome."""

    def call():
        conn = get_connection()
        try:
            return func(conn)
        finally:
            conn.close()

    return capture(operation, call, default=default)


# ============================================================================
# CLIENTS
# ============================================================================


def list_clients(tenant_id: str) -> ServiceResult:
    return _run("list_clients", lambda conn: record_operations.list_clients(conn, tenant_id), default=[])


def get_client(tenant_id: str, client_id: str) -> ServiceResult:
    def load(conn):
        client = record_operations.get_client(conn, tenant_id, client_id)
        if client is None:
            raise NotFoundError("Client not found")
        return client

    return _run("get_client", load)


def create_client(tenant_id: str, fields: Dict[str, Any], user_id: str) -> ServiceResult:
    fields = dict(fields)
    fields["name"] = _required(fields, "name", "Client name")

    def create(conn):
        client = record_operations.create_client(conn, tenant_id, fields, user_id)
        logger.info("Client %s created in tenant %s", client["id"], tenant_id)
        return client

    return _run("create_client", create)


def update_client(tenant_id: str, client_id: str, fields: Dict[str, Any], user_id: str) -> ServiceResult:
    if "name" in fields:
        fields = dict(fields)
        fields["name"] = _required(fields, "name", "Client name")

    def update(conn):
        if not record_operations.update_client(conn, tenant_id, client_id, fields, user_id):
            raise NotFoundError("Client not found")
        return record_operations.get_client(conn, tenant_id, client_id)

    return _run("update_client", update)


def delete_client(tenant_id: str, client_id: str) -> ServiceResult:
    def delete(conn):
        if not record_operations.delete_client(conn, tenant_id, client_id):
            raise NotFoundError("Client not found")
        logger.info("Client %s deleted from tenant %s", client_id, tenant_id)

    return _run("delete_client", delete)


# ============================================================================
# SESSIONS
# ============================================================================


def list_sessions(tenant_id: str, client_id: Optional[str] = None) -> ServiceResult:
    return _run(
        "list_sessions",
        lambda conn: record_operations.list_sessions(conn, tenant_id, client_id),
        default=[],
    )


def get_session(tenant_id: str, session_id: str) -> ServiceResult:
    def load(conn):
        session = record_operations.get_session(conn, tenant_id, session_id)
        if session is None:
            raise NotFoundError("Session not found")
        return session

    return _run("get_session", load)


def create_session(tenant_id: str, fields: Dict[str, Any], user_id: str) -> ServiceResult:
    fields = dict(fields)
    client_id = _required(fields, "client_id", "client_id")
    _required(fields, "session_date", "Session date")
    _required(fields, "session_type", "Session type")
    _check_choice(fields, "status", SESSION_STATUSES)
    fields.setdefault("therapist_id", user_id)

    def create(conn):
        _require_client(conn, tenant_id, client_id)
        return record_operations.create_session(conn, tenant_id, fields, user_id)

    return _run("create_session", create)


def update_session(tenant_id: str, session_id: str, fields: Dict[str, Any], user_id: str) -> ServiceResult:
    _check_choice(fields, "status", SESSION_STATUSES)

    def update(conn):
        if not record_operations.update_session(conn, tenant_id, session_id, fields, user_id):
            raise NotFoundError("Session not found")
        return record_operations.get_session(conn, tenant_id, session_id)

    return _run("update_session", update)


# ============================================================================
# SESSION NOTES
# ============================================================================


def _template_keys(tenant_id: str, template_type: str) -> list:
    """Resolve the field keys of an enabled template for the tenant."""
    if not template_type:
        raise ValidationError("template_type is required")
    templates = note_templates.get_templates(tenant_id)
    if templates.error:
        raise templates.error
    return note_templates.template_field_keys(templates.data, template_type)


def list_session_notes(tenant_id: str, client_id: str) -> ServiceResult:
    return _run(
        "list_session_notes",
        lambda conn: record_operations.list_session_notes(conn, tenant_id, client_id),
        default=[],
    )


def create_session_note(tenant_id: str, fields: Dict[str, Any], user_id: str) -> ServiceResult:
    """
    Create a note for a session. The content object must only use the
    template's field keys; missing keys are stored empty.
    """
    session_id = _required(fields, "session_id", "session_id")
    client_id = _required(fields, "client_id", "client_id")
    template_type = fields.get("template_type") or "free"
    if template_type in note_templates.TEMPLATE_FIELDS:
        note_templates.validate_note_content(
            note_templates.TEMPLATE_FIELDS[template_type], fields.get("content")
        )

    keys_result = capture("create_session_note", lambda: _template_keys(tenant_id, template_type))
    if keys_result.error:
        return keys_result
    content = note_templates.validate_note_content(keys_result.data, fields.get("content"))

    def create(conn):
        session = record_operations.get_session(conn, tenant_id, session_id)
        if session is None or session["client_id"] != client_id:
            raise NotFoundError("Session not found")
        note = record_operations.create_session_note(
            conn,
            tenant_id,
            session_id,
            client_id,
            template_type,
            content,
            user_id,
            practitioner_risk_rating=fields.get("practitioner_risk_rating"),
            is_shared_with_client=bool(fields.get("is_shared_with_client")),
        )
        logger.info("Note %s (%s) created for session %s", note["id"], template_type, session_id)
        return note

    return _run("create_session_note", create)


def update_session_note(tenant_id: str, note_id: str, fields: Dict[str, Any], user_id: str) -> ServiceResult:
    """Update a note; new content is checked against the note's template."""
    fields = dict(fields)

    def load(conn):
        note = record_operations.get_session_note(conn, tenant_id, note_id)
        if note is None:
            raise NotFoundError("Session note not found")
        return note

    existing = _run("update_session_note", load)
    if existing.error:
        return existing

    template_type = fields.get("template_type") or existing.data["template_type"]
    if "content" in fields or template_type != existing.data["template_type"]:
        keys_result = capture("update_session_note", lambda: _template_keys(tenant_id, template_type))
        if keys_result.error:
            return keys_result
        fields["content"] = note_templates.validate_note_content(
            keys_result.data, fields.get("content", existing.data["content"])
        )
        fields["template_type"] = template_type

    def update(conn):
        record_operations.update_session_note(conn, tenant_id, note_id, fields, user_id)
        return record_operations.get_session_note(conn, tenant_id, note_id)

    return _run("update_session_note", update)


# ============================================================================
# HOMEWORK
# ============================================================================


def list_homework(tenant_id: str, client_id: str) -> ServiceResult:
    return _run(
        "list_homework",
        lambda conn: record_operations.list_homework(conn, tenant_id, client_id),
        default=[],
    )


def create_homework(tenant_id: str, fields: Dict[str, Any], user_id: str) -> ServiceResult:
    client_id = _required(fields, "client_id", "client_id")
    _required(fields, "title", "Title")

    def create(conn):
        _require_client(conn, tenant_id, client_id)
        return record_operations.create_homework(conn, tenant_id, fields, user_id)

    return _run("create_homework", create)


def update_homework(tenant_id: str, homework_id: str, fields: Dict[str, Any], user_id: str) -> ServiceResult:
    """Update homework. Moving to ``completed`` stamps completed_at."""
    _check_choice(fields, "status", HOMEWORK_STATUSES)
    fields = dict(fields)
    if fields.get("status") == "completed" and not fields.get("completed_at"):
        fields["completed_at"] = get_utc_timestamp()
    elif fields.get("status") in ("assigned", "in_progress"):
        fields["completed_at"] = None

    def update(conn):
        if not record_operations.update_homework(conn, tenant_id, homework_id, fields, user_id):
            raise NotFoundError("Homework not found")
        return record_operations.get_homework(conn, tenant_id, homework_id)

    return _run("update_homework", update)


# ============================================================================
# CLIENT GOALS
# ============================================================================


def get_client_goals(tenant_id: str, client_id: str) -> ServiceResult:
    """Goals for a client; all dimensions empty when none were saved."""

    def load(conn):
        _require_client(conn, tenant_id, client_id)
        goals = record_operations.get_client_goals(conn, tenant_id, client_id)
        if goals is None:
            goals = {column: "" for column in record_operations.GOAL_COLUMNS}
            goals.update({"tenant_id": tenant_id, "client_id": client_id})
        return goals

    return _run("get_client_goals", load)


def upsert_client_goals(tenant_id: str, client_id: str, goals: Dict[str, Any], user_id: str) -> ServiceResult:
    unknown = set(goals) - set(record_operations.GOAL_COLUMNS)
    if unknown:
        raise ValidationError(f"Unknown goal dimensions: {', '.join(sorted(unknown))}")

    def save(conn):
        _require_client(conn, tenant_id, client_id)
        return record_operations.upsert_client_goals(conn, tenant_id, client_id, goals, user_id)

    return _run("upsert_client_goals", save)


# ============================================================================
# JOURNAL
# ============================================================================


def list_journal_entries(tenant_id: str, client_id: Optional[str] = None) -> ServiceResult:
    return _run(
        "list_journal_entries",
        lambda conn: record_operations.list_journal_entries(conn, tenant_id, client_id),
        default=[],
    )


def create_journal_entry(tenant_id: str, fields: Dict[str, Any], user_id: str) -> ServiceResult:
    client_id = _required(fields, "client_id", "client_id")
    _required(fields, "title", "Title")
    _required(fields, "content", "Content")

    def create(conn):
        _require_client(conn, tenant_id, client_id)
        return record_operations.create_journal_entry(conn, tenant_id, fields, user_id)

    return _run("create_journal_entry", create)


def update_journal_entry(tenant_id: str, entry_id: str, fields: Dict[str, Any], user_id: str) -> ServiceResult:
    for key, label in (("title", "Title"), ("content", "Content")):
        if key in fields:
            _required(fields, key, label)

    def update(conn):
        if not record_operations.update_journal_entry(conn, tenant_id, entry_id, fields, user_id):
            raise NotFoundError("Journal entry not found")
        return record_operations.get_journal_entry(conn, tenant_id, entry_id)

    return _run("update_journal_entry", update)


def delete_journal_entry(tenant_id: str, entry_id: str) -> ServiceResult:
    def delete(conn):
        if not record_operations.delete_journal_entry(conn, tenant_id, entry_id):
            raise NotFoundError("Journal entry not found")

    return _run("delete_journal_entry", delete)
