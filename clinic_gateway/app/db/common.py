"""
Helpers shared by the repository operation modules.
"""

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional


def get_utc_timestamp() -> str:
    """Get current UTC timestamp in ISO 8601 format."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def generate_id() -> str:
    """Generate a new row identifier."""
    return str(uuid.uuid4())


def row_to_dict(row: Optional[sqlite3.Row], bool_fields: Iterable[str] = ()) -> Optional[Dict[str, Any]]:
    """Convert a row to a dict, turning SQLite 0/1 flags into bools."""
    if row is None:
        return None
    out = dict(row)
    for field in bool_fields:
        if field in out and out[field] is not None:
            out[field] = bool(out[field])
    return out


def rows_to_dicts(rows: List[sqlite3.Row], bool_fields: Iterable[str] = ()) -> List[Dict[str, Any]]:
    bool_fields = tuple(bool_fields)
    return [row_to_dict(row, bool_fields) for row in rows]


def dumps(value: Any) -> str:
    """Serialize a JSON column value with stable key ordering."""
    return json.dumps(value, sort_keys=True)


def build_update(
    fields: Dict[str, Any], allowed: Iterable[str]
) -> tuple:
    """
    Build the SET clause for a partial update.

    Only keys in ``allowed`` are written; everything else is ignored so
    callers cannot touch tenant_id, ids or audit columns.
    """
    allowed = set(allowed)
    columns = [key for key in fields if key in allowed]
    clause = ", ".join(f"{column} = ?" for column in columns)
    values = [fields[column] for column in columns]
    return clause, values
