"""
Session-note templates and their per-tenant settings.

The six built-in templates have fixed field lists. A tenant can switch
templates on or off and add custom ones; the whole list is stored under the
configuration key ``note_templates``. Every successful change is published
on a TemplateSettingsChannel so in-process consumers (such as cached editors)
can refresh without polling.
"""

import copy
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence

from clinic_gateway.app.db import settings_operations
from clinic_gateway.app.db.migrate import get_connection
from clinic_gateway.app.errors import ValidationError
from clinic_gateway.app.services.results import ServiceResult, capture

logger = logging.getLogger(__name__)

CONFIG_KEY = "note_templates"

DEFAULT_TEMPLATES: List[Dict[str, Any]] = [
    {
        "id": "free",
        "label": "Free Field",
        "fields": [{"key": "content", "label": "Session Notes"}],
    },
    {
        "id": "soap",
        "label": "SOAP Notes",
        "fields": [
            {"key": "subjective", "label": "Subjective", "description": "Client's perspective, feelings, and reported experiences"},
            {"key": "objective", "label": "Objective", "description": "Observable behaviors, appearance, and factual data"},
            {"key": "assessment", "label": "Assessment", "description": "Clinical interpretation and progress analysis"},
            {"key": "plan", "label": "Plan", "description": "Future treatment course and next steps"},
        ],
    },
    {
        "id": "birp",
        "label": "BIRP Notes",
        "fields": [
            {"key": "behavior", "label": "Behavior", "description": "Observable and reported behaviors"},
            {"key": "intervention", "label": "Intervention", "description": "Therapeutic interventions used"},
            {"key": "response", "label": "Response", "description": "Client's response to interventions"},
            {"key": "plan", "label": "Plan", "description": "Future session plans and strategies"},
        ],
    },
    {
        "id": "dap",
        "label": "DAP Notes",
        "fields": [
            {"key": "data", "label": "Data", "description": "Combined subjective and objective information"},
            {"key": "assessment", "label": "Assessment", "description": "Clinical assessment of the data"},
            {"key": "plan", "label": "Plan", "description": "Future treatment plan"},
        ],
    },
    {
        "id": "pirp",
        "label": "PIRP Notes",
        "fields": [
            {"key": "problem", "label": "Problem", "description": "Specific problems addressed in session"},
            {"key": "intervention", "label": "Intervention", "description": "Interventions used for problems"},
            {"key": "response", "label": "Response", "description": "Client's response to interventions"},
            {"key": "plan", "label": "Plan", "description": "Future plan for addressing problems"},
        ],
    },
    {
        "id": "girp",
        "label": "GIRP Notes",
        "fields": [
            {"key": "goal", "label": "Goal", "description": "Client's treatment goals addressed"},
            {"key": "intervention", "label": "Intervention", "description": "Interventions aimed at goals"},
            {"key": "response", "label": "Response", "description": "Client's response in relation to goals"},
            {"key": "plan", "label": "Plan", "description": "Continued work on goals"},
        ],
    },
]

BUILTIN_TEMPLATES = {template["id"]: template for template in DEFAULT_TEMPLATES}

TEMPLATE_FIELDS = {
    template["id"]: [field["key"] for field in template["fields"]]
    for template in DEFAULT_TEMPLATES
}


class TemplateSettingsChannel:
    """
    Publish/subscribe channel for template setting changes.

    Subscribers are called with ``(tenant_id, templates)`` after a change
    is stored. subscribe() returns a function that removes the subscriber.
    """

    def __init__(self):
        self._subscribers: List[Callable[[str, List[Dict[str, Any]]], None]] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[str, List[Dict[str, Any]]], None]) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, tenant_id: str, templates: List[Dict[str, Any]]) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(tenant_id, copy.deepcopy(templates))
            except Exception:
                # One broken subscriber must not block the others
                logger.exception("Template settings subscriber failed")

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)


_channel = TemplateSettingsChannel()


def get_template_channel() -> TemplateSettingsChannel:
    return _channel


def default_templates() -> List[Dict[str, Any]]:
    templates = copy.deepcopy(DEFAULT_TEMPLATES)
    for template in templates:
        template["is_enabled"] = True
        template["is_custom"] = False
    return templates


def _load(tenant_id: str) -> List[Dict[str, Any]]:
    conn = get_connection()
    try:
        stored = settings_operations.get_configuration(conn, tenant_id, CONFIG_KEY)
    finally:
        conn.close()
    if stored is None:
        return default_templates()
    return stored["value"]


def get_templates(tenant_id: str) -> ServiceResult:
    return capture("get_templates", lambda: _load(tenant_id), default=default_templates())


def get_enabled_templates(tenant_id: str) -> ServiceResult:
    return capture(
        "get_templates",
        lambda: [t for t in _load(tenant_id) if t.get("is_enabled")],
        default=[],
    )


def normalize_templates(templates: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Validate a submitted template list.

    Built-in templates keep their fixed fields (only the enabled flag is
    taken from the input) and are always present. Custom templates need a
    unique id, a label and at least one field with a unique key.
    """
    submitted = {}
    for template in templates:
        template_id = (template.get("id") or "").strip()
        if not template_id:
            raise ValidationError("Template id is required")
        if template_id in submitted:
            raise ValidationError(f"Duplicate template id '{template_id}'")
        submitted[template_id] = template

    normalized = []
    for builtin in default_templates():
        if builtin["id"] in submitted:
            builtin["is_enabled"] = bool(submitted[builtin["id"]].get("is_enabled", True))
        normalized.append(builtin)

    for template_id, template in submitted.items():
        if template_id in BUILTIN_TEMPLATES:
            continue
        label = (template.get("label") or "").strip()
        if not label:
            raise ValidationError(f"Template '{template_id}' needs a label")
        fields = []
        keys = set()
        for field in template.get("fields") or []:
            key = (field.get("key") or "").strip()
            if not key or key in keys:
                raise ValidationError(f"Template '{template_id}' has a missing or duplicate field key")
            keys.add(key)
            fields.append(
                {
                    "key": key,
                    "label": (field.get("label") or key).strip(),
                    "description": field.get("description"),
                }
            )
        if not fields:
            raise ValidationError(f"Template '{template_id}' needs at least one field")
        normalized.append(
            {
                "id": template_id,
                "label": label,
                "fields": fields,
                "is_enabled": bool(template.get("is_enabled", True)),
                "is_custom": True,
            }
        )
    return normalized


def update_templates(
    tenant_id: str, templates: Sequence[Dict[str, Any]], user_id: str
) -> ServiceResult:
    """Store a tenant's template settings and publish the change."""
    normalized = normalize_templates(templates)

    def store():
        conn = get_connection()
        try:
            settings_operations.upsert_configuration(
                conn, tenant_id, CONFIG_KEY, normalized, user_id, config_type="note_templates"
            )
        finally:
            conn.close()
        return normalized

    result = capture("update_templates", store)
    if result.ok:
        logger.info("Note templates updated for tenant %s", tenant_id)
        _channel.publish(tenant_id, normalized)
    return result


def template_field_keys(templates: Sequence[Dict[str, Any]], template_type: str) -> List[str]:
    """Field keys of an enabled template, or ValidationError."""
    for template in templates:
        if template["id"] == template_type:
            if not template.get("is_enabled", True):
                raise ValidationError(f"Template '{template_type}' is disabled")
            return [field["key"] for field in template["fields"]]
    raise ValidationError(f"Unknown note template '{template_type}'")


def validate_note_content(field_keys: Sequence[str], content: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """
    Check note content against a template's fields.

    Unknown keys are rejected; missing keys are stored as empty strings so
    every note carries the full field set.
    """
    if not isinstance(content, dict):
        raise ValidationError("Note content must be an object")
    unknown = sorted(set(content) - set(field_keys))
    if unknown:
        raise ValidationError(f"Unknown note fields: {', '.join(unknown)}")
    cleaned = {}
    for key in field_keys:
        value = content.get(key)
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise ValidationError(f"Note field '{key}' must be text")
        cleaned[key] = value
    return cleaned
