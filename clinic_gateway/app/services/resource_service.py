"""
Client learning-resource service.

A resource is either an uploaded document or a URL, curated by a
practitioner for one client. Document bytes go to the object store under
``{user_id}/{epoch_millis}-{suffix}.{ext}``; the client_resources row is the
index entry.

Upload and insert are independent steps: the object is uploaded first and
removed again if the row cannot be written. Deletion is soft: the object is
removed (failures logged, not raised) and the row is flagged inactive.

Input validation raises before any I/O; store failures come back in the
ServiceResult.
"""

import logging
from typing import Any, Dict, Optional

from clinic_gateway.app.db import record_operations, resource_operations
from clinic_gateway.app.db.migrate import get_connection
from clinic_gateway.app.errors import AuthError, NotFoundError, ServiceError, StorageError, ValidationError
from clinic_gateway.app.security.auth import Identity
from clinic_gateway.app.services.object_store import get_object_store
from clinic_gateway.app.services.results import ServiceResult, capture
from clinic_gateway.app.services.uploads import (
    Upload,
    build_storage_path,
    require_uuid,
    validate_upload,
)

logger = logging.getLogger(__name__)

RESOURCE_TYPES = ("document", "url")


def _validate(identity: Optional[Identity], payload: Dict[str, Any], upload: Optional[Upload]) -> Dict[str, Any]:
    if identity is None:
        raise AuthError("Authentication required")

    client_id = require_uuid(payload.get("client_id"), "client_id")
    require_uuid(identity.sub, "user_id")

    title = (payload.get("title") or "").strip()
    if not title:
        raise ValidationError("Title is required")

    resource_type = payload.get("resource_type")
    if resource_type not in RESOURCE_TYPES:
        raise ValidationError("resource_type must be 'document' or 'url'")

    url = (payload.get("url") or "").strip() or None
    if resource_type == "document":
        validate_upload(upload)
    elif not url:
        raise ValidationError("A URL is required for url resources")

    return {
        "client_id": client_id,
        "title": title,
        "resource_type": resource_type,
        "description": (payload.get("description") or "").strip() or None,
        "url": url if resource_type == "url" else None,
    }


def _remove_quietly(path: str, reason: str) -> None:
    try:
        get_object_store().remove([path])
    except Exception as e:
        logger.error("Failed to remove object %s after %s: %s", path, reason, e)


def create_resource(
    identity: Optional[Identity],
    payload: Dict[str, Any],
    upload: Optional[Upload] = None,
) -> ServiceResult:
    """
    Create a resource for a client.

    Raises:
        AuthError: no authenticated identity
        ValidationError: malformed ids, empty title, bad type, missing file/url
    """
    fields = _validate(identity, payload, upload)
    tenant_id = identity.tenant_id
    user_id = identity.sub

    def ensure_client():
        conn = get_connection()
        try:
            if not record_operations.get_client(conn, tenant_id, fields["client_id"]):
                raise NotFoundError("Client not found")
        finally:
            conn.close()

    checked = capture("create_resource", ensure_client)
    if checked.error:
        return checked

    file_path = None
    if fields["resource_type"] == "document":
        store = get_object_store()
        file_path = build_storage_path(user_id, upload.filename)
        try:
            store.upload(file_path, upload.data, upload.content_type)
        except ServiceError as e:
            return ServiceResult.failure(e)
        except Exception as e:
            logger.error("Upload failed for %s: %s", file_path, e)
            return ServiceResult.failure(StorageError("Failed to upload file"))

    def insert():
        conn = get_connection()
        try:
            return resource_operations.insert_resource(
                conn,
                tenant_id,
                fields["client_id"],
                fields["resource_type"],
                fields["title"],
                user_id,
                description=fields["description"],
                url=fields["url"],
                file_path=file_path,
                file_size=upload.size if file_path else None,
                mime_type=(upload.content_type or "application/octet-stream") if file_path else None,
            )
        finally:
            conn.close()

    result = capture("create_resource", insert)
    if result.error and file_path:
        _remove_quietly(file_path, "failed insert")
    elif result.ok:
        logger.info("Resource %s created for client %s", result.data["id"], fields["client_id"])
    return result


def get_client_resources(tenant_id: str, client_id: str) -> ServiceResult:
    """Active resources for a client, newest first."""

    def load():
        conn = get_connection()
        try:
            return resource_operations.list_active_resources(conn, tenant_id, client_id)
        finally:
            conn.close()

    return capture("get_client_resources", load, default=[])


def download_resource(tenant_id: str, file_path: str) -> ServiceResult:
    """
    Fetch the bytes behind an active resource of the caller's tenant.

    Paths that do not index an active resource row in the tenant are
    reported as not found, whether or not the object exists.
    """
    if not file_path:
        raise ValidationError("file_path is required")

    def load():
        conn = get_connection()
        try:
            resource = resource_operations.get_active_resource_by_path(conn, tenant_id, file_path)
        finally:
            conn.close()
        if resource is None:
            raise NotFoundError("Resource not found")
        return {
            "content": get_object_store().download(file_path),
            "mime_type": resource["mime_type"] or "application/octet-stream",
            "title": resource["title"],
        }

    return capture("download_resource", load)


def delete_resource(tenant_id: str, resource_id: str, acting_user_id: str) -> ServiceResult:
    """
    Soft-delete a resource.

    The object is removed first; a removal failure is logged and does not
    stop the row from being deactivated.
    """

    def delete():
        conn = get_connection()
        try:
            resource = resource_operations.get_resource(conn, tenant_id, resource_id)
            if resource is None:
                raise NotFoundError("Resource not found")

            if resource["file_path"]:
                _remove_quietly(resource["file_path"], "resource delete")

            resource_operations.deactivate_resource(conn, tenant_id, resource_id, acting_user_id)
        finally:
            conn.close()
        logger.info("Resource %s deactivated", resource_id)
        return None

    return capture("delete_resource", delete)
