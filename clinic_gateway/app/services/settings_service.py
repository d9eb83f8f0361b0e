"""
Practice branding and configuration settings.
"""

import logging
import re
from typing import Any, Dict, Optional

from clinic_gateway.app.db import settings_operations, tenant_operations
from clinic_gateway.app.db.common import get_utc_timestamp
from clinic_gateway.app.db.migrate import get_connection
from clinic_gateway.app.errors import NotFoundError, ValidationError
from clinic_gateway.app.services.note_templates import CONFIG_KEY as NOTE_TEMPLATES_KEY
from clinic_gateway.app.services.results import ServiceResult, capture

logger = logging.getLogger(__name__)

DEFAULT_PRIMARY_COLOR = "#0f766e"
DEFAULT_SECONDARY_COLOR = "#14b8a6"

HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")

# Keys owned by dedicated endpoints
RESERVED_KEYS = (NOTE_TEMPLATES_KEY,)


def default_branding(tenant_id: str) -> Dict[str, Any]:
    return {
        "tenant_id": tenant_id,
        "logo_url": "",
        "primary_color": DEFAULT_PRIMARY_COLOR,
        "secondary_color": DEFAULT_SECONDARY_COLOR,
        "practice_name": None,
    }


def get_branding(tenant_id: str) -> ServiceResult:
    """Branding for the tenant, falling back to the default palette."""

    def load():
        conn = get_connection()
        try:
            branding = settings_operations.get_branding(conn, tenant_id)
            practice_name = settings_operations.get_configuration(conn, tenant_id, "practice_name")
        finally:
            conn.close()
        out = default_branding(tenant_id)
        if branding:
            out.update(
                {
                    "logo_url": branding["logo_url"],
                    "primary_color": branding["primary_color"],
                    "secondary_color": branding["secondary_color"],
                }
            )
        if practice_name:
            out["practice_name"] = practice_name["value"]
        return out

    return capture("get_branding", load, default=default_branding(tenant_id))


def upsert_branding(
    tenant_id: str,
    user_id: str,
    practice_name: str,
    logo_url: Optional[str] = None,
    primary_color: Optional[str] = None,
    secondary_color: Optional[str] = None,
) -> ServiceResult:
    """
    Save branding. Also makes sure the tenant is registered and stores the
    practice name under the ``practice_name`` configuration key.
    """
    practice_name = (practice_name or "").strip()
    if not practice_name:
        raise ValidationError("Practice name is required")
    primary_color = primary_color or DEFAULT_PRIMARY_COLOR
    secondary_color = secondary_color or DEFAULT_SECONDARY_COLOR
    for label, color in (("primary_color", primary_color), ("secondary_color", secondary_color)):
        if not HEX_COLOR.match(color):
            raise ValidationError(f"{label} must be a hex color like #0f766e")

    def save():
        conn = get_connection()
        try:
            tenant_operations.upsert_tenant(conn, tenant_id, practice_name)
            settings_operations.upsert_branding(
                conn, tenant_id, logo_url or "", primary_color, secondary_color, user_id
            )
            settings_operations.upsert_configuration(
                conn, tenant_id, "practice_name", practice_name, user_id, config_type="static"
            )
        finally:
            conn.close()
        logger.info("Branding updated for tenant %s", tenant_id)
        return {
            "tenant_id": tenant_id,
            "logo_url": logo_url or "",
            "primary_color": primary_color,
            "secondary_color": secondary_color,
            "practice_name": practice_name,
            "updated_at_utc": get_utc_timestamp(),
        }

    return capture("upsert_branding", save)


def list_configurations(tenant_id: str) -> ServiceResult:
    def load():
        conn = get_connection()
        try:
            return settings_operations.list_configurations(conn, tenant_id)
        finally:
            conn.close()

    return capture("list_configurations", load, default=[])


def get_configuration(tenant_id: str, key: str) -> ServiceResult:
    def load():
        conn = get_connection()
        try:
            config = settings_operations.get_configuration(conn, tenant_id, key)
        finally:
            conn.close()
        if config is None:
            raise NotFoundError("Configuration not found")
        return config

    return capture("get_configuration", load)


def update_configuration(
    tenant_id: str, key: str, value: Any, user_id: str, config_type: str = "dynamic"
) -> ServiceResult:
    """Write a configuration value; its version goes up by one each time."""
    key = (key or "").strip()
    if not key:
        raise ValidationError("Configuration key is required")
    if key in RESERVED_KEYS:
        raise ValidationError(f"'{key}' is managed by its own endpoint")

    def save():
        conn = get_connection()
        try:
            return settings_operations.upsert_configuration(
                conn, tenant_id, key, value, user_id, config_type=config_type
            )
        finally:
            conn.close()

    return capture("update_configuration", save)
