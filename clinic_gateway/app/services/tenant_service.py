"""
Tenant registry service.

Tenants are created by practice registration (or by a platform admin),
suspended and re-activated by a platform admin, and never hard-deleted.
"""

import logging
from typing import Any, Dict, List

from clinic_gateway.app.db import tenant_operations
from clinic_gateway.app.db.migrate import get_connection
from clinic_gateway.app.errors import NotFoundError, ValidationError
from clinic_gateway.app.security.auth import Identity

logger = logging.getLogger(__name__)

TENANT_STATUSES = ("active", "suspended")


def create_tenant(practice_name: str, status: str = "active") -> Dict[str, Any]:
    practice_name = (practice_name or "").strip()
    if not practice_name:
        raise ValidationError("Practice name is required")
    if status not in TENANT_STATUSES:
        raise ValidationError(f"status must be one of {list(TENANT_STATUSES)}")

    conn = get_connection()
    try:
        tenant_id = tenant_operations.create_tenant(conn, practice_name, status=status)
        tenant = tenant_operations.get_tenant(conn, tenant_id)
    finally:
        conn.close()

    logger.info("Tenant %s created", tenant_id)
    return tenant


def get_tenant(tenant_id: str) -> Dict[str, Any]:
    conn = get_connection()
    try:
        tenant = tenant_operations.get_tenant(conn, tenant_id)
    finally:
        conn.close()
    if tenant is None:
        raise NotFoundError("Tenant not found")
    return tenant


def list_tenants(identity: Identity) -> List[Dict[str, Any]]:
    """Platform admins see every tenant; anyone else only their own."""
    conn = get_connection()
    try:
        if identity.is_platform_admin:
            return tenant_operations.list_tenants(conn)
        tenant = tenant_operations.get_tenant(conn, identity.tenant_id)
        return [tenant] if tenant else []
    finally:
        conn.close()


def update_tenant_status(tenant_id: str, status: str) -> Dict[str, Any]:
    if status not in TENANT_STATUSES:
        raise ValidationError(f"status must be one of {list(TENANT_STATUSES)}")

    conn = get_connection()
    try:
        if not tenant_operations.update_tenant_status(conn, tenant_id, status):
            raise NotFoundError("Tenant not found")
        tenant = tenant_operations.get_tenant(conn, tenant_id)
    finally:
        conn.close()

    logger.info("Tenant %s status set to %s", tenant_id, status)
    return tenant


def ensure_tenant(tenant_id: str, practice_name: str) -> None:
    """Register the tenant if it is not in the registry yet."""
    conn = get_connection()
    try:
        tenant_operations.upsert_tenant(conn, tenant_id, practice_name)
    finally:
        conn.close()
