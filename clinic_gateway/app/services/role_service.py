"""
Role and page-permission service.

Base roles (owner, admin, practitioner) are constants and are never stored;
list_roles() merges them with the tenant's custom role rows. Custom role
names are unique per tenant, case-sensitive, and may not shadow a base role.

Page access is default-deny: a page with no permission row is closed to
every role except owner, which is always allowed.

This service raises typed errors (ValidationError, ConflictError,
NotFoundError). Validation always happens before the database is opened.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional, Sequence

from clinic_gateway.app.db import role_operations
from clinic_gateway.app.db.migrate import get_connection
from clinic_gateway.app.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

BASE_ROLES = ("owner", "admin", "practitioner")

DUPLICATE_ROLE_MESSAGE = "Role name already exists"

# Pages seeded for every new practice, with the roles allowed on each
DEFAULT_PAGES = (
    ("/practice/dashboard", "Dashboard", ("owner", "admin", "practitioner")),
    ("/practice/clients", "Clients", ("owner", "admin", "practitioner")),
    ("/practice/calendar", "Calendar", ("owner", "admin", "practitioner")),
    ("/practice/notes", "Notes", ("owner", "admin", "practitioner")),
    ("/practice/telehealth", "Telehealth", ("owner", "admin", "practitioner")),
    ("/practice/settings", "Settings", ("owner", "admin")),
)


def _base_role(tenant_id: str, name: str) -> Dict[str, Any]:
    return {
        "id": None,
        "tenant_id": tenant_id,
        "role_name": name,
        "role_description": None,
        "is_default": True,
        "is_base": True,
    }


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Role name is required")
    return cleaned


def list_roles(tenant_id: str) -> List[Dict[str, Any]]:
    """Base roles followed by the tenant's custom roles ordered by name."""
    conn = get_connection()
    try:
        custom = role_operations.list_roles(conn, tenant_id)
    finally:
        conn.close()

    roles = [_base_role(tenant_id, name) for name in BASE_ROLES]
    for row in custom:
        row["is_base"] = False
        roles.append(row)
    return roles


def list_custom_roles(tenant_id: str) -> List[Dict[str, Any]]:
    """The tenant's stored role rows only."""
    conn = get_connection()
    try:
        rows = role_operations.list_roles(conn, tenant_id)
    finally:
        conn.close()
    for row in rows:
        row["is_base"] = False
    return rows


def add_role(
    tenant_id: str,
    name: str,
    description: Optional[str],
    acting_user_id: Optional[str],
) -> Dict[str, Any]:
    """
    Create a custom role.

    Raises:
        ValidationError: name is empty after trimming
        ConflictError: the name is a base role or already exists in the tenant
    """
    role_name = _clean_name(name)
    if role_name in BASE_ROLES:
        raise ConflictError(DUPLICATE_ROLE_MESSAGE)

    conn = get_connection()
    try:
        if role_operations.find_role_by_name(conn, tenant_id, role_name):
            raise ConflictError(DUPLICATE_ROLE_MESSAGE)
        try:
            role_id = role_operations.create_role(
                conn, tenant_id, role_name, description, acting_user_id
            )
        except sqlite3.IntegrityError:
            # A concurrent insert won the race; the constraint is authoritative
            raise ConflictError(DUPLICATE_ROLE_MESSAGE)
        role = role_operations.get_role(conn, tenant_id, role_id)
    finally:
        conn.close()

    logger.info("Role %s created in tenant %s", role_id, tenant_id)
    role["is_base"] = False
    return role


def update_role(tenant_id: str, role_id: str, name: str) -> Dict[str, Any]:
    """
    Rename a custom role. Keeping the role's own name is not a conflict.

    Raises:
        ValidationError: name is empty after trimming
        ConflictError: another role in the tenant already has the name
        NotFoundError: no such role in the tenant
    """
    role_name = _clean_name(name)
    if role_name in BASE_ROLES:
        raise ConflictError(DUPLICATE_ROLE_MESSAGE)

    conn = get_connection()
    try:
        if not role_operations.get_role(conn, tenant_id, role_id):
            raise NotFoundError("Role not found")
        existing = role_operations.find_role_by_name(conn, tenant_id, role_name)
        if existing and existing["id"] != role_id:
            raise ConflictError(DUPLICATE_ROLE_MESSAGE)
        try:
            role_operations.rename_role(conn, tenant_id, role_id, role_name)
        except sqlite3.IntegrityError:
            raise ConflictError(DUPLICATE_ROLE_MESSAGE)
        role = role_operations.get_role(conn, tenant_id, role_id)
    finally:
        conn.close()

    role["is_base"] = False
    return role


def delete_role(tenant_id: str, role_id: str) -> None:
    """
    Delete a custom role row.

    Users holding the role and page permissions naming it are left as they
    are; a dangling name simply matches no role definition.
    """
    conn = get_connection()
    try:
        deleted = role_operations.delete_role(conn, tenant_id, role_id)
    finally:
        conn.close()

    if not deleted:
        raise NotFoundError("Role not found")
    logger.info("Role %s deleted from tenant %s", role_id, tenant_id)


def toggle_role(current_roles: Sequence[str], role: str) -> List[str]:
    """Remove ``role`` if present, otherwise append it."""
    if role in current_roles:
        return [r for r in current_roles if r != role]
    return list(current_roles) + [role]


def update_page_permissions(
    tenant_id: str,
    page_id: str,
    role: str,
    current_roles: Sequence[str],
    acting_user_id: Optional[str],
) -> List[str]:
    """
    Toggle ``role`` on a page and persist the resulting role list.

    ``current_roles`` is the list the caller last saw; the stored value is
    replaced with the toggled version of it.
    """
    role = (role or "").strip()
    if not role:
        raise ValidationError("Role is required")

    roles = toggle_role(current_roles, role)

    conn = get_connection()
    try:
        updated = role_operations.set_page_roles(
            conn, tenant_id, page_id, roles, acting_user_id
        )
    finally:
        conn.close()

    if not updated:
        raise NotFoundError("Page permission not found")
    return roles


def list_page_permissions(tenant_id: str) -> List[Dict[str, Any]]:
    conn = get_connection()
    try:
        return role_operations.list_page_permissions(conn, tenant_id)
    finally:
        conn.close()


def seed_page_permissions(
    conn: sqlite3.Connection, tenant_id: str, acting_user_id: Optional[str]
) -> int:
    """Insert the default page catalogue for a new tenant in one commit."""
    for page_path, page_name, roles in DEFAULT_PAGES:
        role_operations.create_page_permission(
            conn,
            tenant_id,
            page_path,
            page_name,
            list(roles),
            updated_by=acting_user_id,
            commit=False,
        )
    conn.commit()
    return len(DEFAULT_PAGES)


def is_page_allowed(
    permissions: Sequence[Dict[str, Any]],
    page_path: str,
    role: str,
    component_name: Optional[str] = None,
) -> bool:
    """Default-deny page check. Owner is always allowed."""
    if role == "owner":
        return True
    for permission in permissions:
        if permission["page_path"] != page_path:
            continue
        if permission.get("component_name") != component_name:
            continue
        return role in permission.get("roles", [])
    return False


def get_available_roles(custom_roles: Sequence[Any]) -> List[str]:
    """Base roles, then custom role names not already in the base set."""
    names = list(BASE_ROLES)
    for role in custom_roles:
        name = role["role_name"] if isinstance(role, dict) else role
        if name not in names:
            names.append(name)
    return names


def get_user_dropdown_roles(custom_roles: Sequence[Any]) -> List[str]:
    """Roles an admin can hand out when adding a user (owner excluded)."""
    return [name for name in get_available_roles(custom_roles) if name != "owner"]
