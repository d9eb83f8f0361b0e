"""
Helpers shared by the resource and document services: the upload payload,
storage key construction and identifier checks.
"""

import os
import secrets
import time
import uuid
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional

from clinic_gateway.app.errors import ValidationError

DEFAULT_MAX_UPLOAD_BYTES = 25 * 1024 * 1024


@dataclass
class Upload:
    """A file received from a client, fully read into memory."""

    filename: str
    data: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


def max_upload_bytes() -> int:
    return int(os.getenv("MAX_UPLOAD_BYTES", str(DEFAULT_MAX_UPLOAD_BYTES)))


def is_uuid(value: Optional[str]) -> bool:
    if not value:
        return False
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def require_uuid(value: Optional[str], label: str) -> str:
    if not is_uuid(value):
        raise ValidationError(f"{label} is not a valid identifier")
    return str(value)


def validate_upload(upload: Optional[Upload]) -> Upload:
    if upload is None or not upload.filename:
        raise ValidationError("A file is required")
    if upload.size == 0:
        raise ValidationError("File is empty")
    if upload.size > max_upload_bytes():
        raise ValidationError("File exceeds the maximum upload size")
    return upload


def file_extension(filename: str) -> str:
    """Lower-cased extension without the dot ("bin" when there is none)."""
    suffix = PurePosixPath(filename).suffix.lstrip(".").lower()
    cleaned = "".join(ch for ch in suffix if ch.isalnum())
    return cleaned or "bin"


def build_storage_path(user_id: str, filename: str, tenant_id: Optional[str] = None) -> str:
    """
    Storage key ``[{tenant_id}/]{user_id}/{epoch_millis}-{suffix}.{ext}``.

    The millisecond timestamp plus a random suffix keeps keys unique
    without a central sequence.
    """
    name = "{}-{}.{}".format(
        int(time.time() * 1000), secrets.token_hex(4), file_extension(filename)
    )
    if tenant_id:
        return f"{tenant_id}/{user_id}/{name}"
    return f"{user_id}/{name}"
