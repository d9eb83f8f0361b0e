"""
Practice document service.

Same upload/index contract as the resource service, with two different
policies: keys are prefixed with the tenant
(``{tenant_id}/{user_id}/{epoch_millis}-{suffix}.{ext}``) and deletion is a
hard delete of both the object and the row.
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

DOCUMENT_TYPES = ("client_upload", "session_notes", "treatment_plan", "assessment")


def upload_document(
    identity: Optional[Identity],
    upload: Optional[Upload],
    client_id: Optional[str] = None,
    document_type: str = "client_upload",
    is_shared_with_client: bool = False,
) -> ServiceResult:
    """
    Store a file and index it in documents.

    Raises:
        AuthError: no authenticated identity
        ValidationError: bad identifiers, unknown document_type, missing file
    """
    if identity is None:
        raise AuthError("Authentication required")
    require_uuid(identity.sub, "user_id")
    if client_id:
        require_uuid(client_id, "client_id")
    if document_type not in DOCUMENT_TYPES:
        raise ValidationError(f"document_type must be one of {list(DOCUMENT_TYPES)}")
    validate_upload(upload)

    tenant_id = identity.tenant_id
    user_id = identity.sub

    if client_id:

        def ensure_client():
            conn = get_connection()
            try:
                if not record_operations.get_client(conn, tenant_id, client_id):
                    raise NotFoundError("Client not found")
            finally:
                conn.close()

        checked = capture("upload_document", ensure_client)
        if checked.error:
            return checked

    store = get_object_store()
    file_path = build_storage_path(user_id, upload.filename, tenant_id=tenant_id)
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
            return resource_operations.insert_document(
                conn,
                tenant_id,
                upload.filename,
                file_path,
                upload.size,
                upload.content_type or "application/octet-stream",
                document_type,
                user_id,
                client_id=client_id,
                is_shared_with_client=is_shared_with_client,
            )
        finally:
            conn.close()

    result = capture("upload_document", insert)
    if result.error:
        try:
            store.remove([file_path])
        except Exception as e:
            logger.error("Failed to remove object %s after failed insert: %s", file_path, e)
    else:
        logger.info("Document %s stored at %s", result.data["id"], file_path)
    return result


def get_client_documents(tenant_id: str, client_id: Optional[str] = None) -> ServiceResult:
    def load():
        conn = get_connection()
        try:
            return resource_operations.list_documents(conn, tenant_id, client_id)
        finally:
            conn.close()

    return capture("get_client_documents", load, default=[])


def download_document(tenant_id: str, file_path: str) -> ServiceResult:
    if not file_path:
        raise ValidationError("file_path is required")

    def load():
        conn = get_connection()
        try:
            document = resource_operations.get_document_by_path(conn, tenant_id, file_path)
        finally:
            conn.close()
        if document is None:
            raise NotFoundError("Document not found")
        return {
            "content": get_object_store().download(file_path),
            "mime_type": document["mime_type"] or "application/octet-stream",
            "name": document["name"],
        }

    return capture("download_document", load)


def delete_document(tenant_id: str, document_id: str) -> ServiceResult:
    """Remove the object (failure logged) and then the row."""

    def delete():
        conn = get_connection()
        try:
            document = resource_operations.get_document(conn, tenant_id, document_id)
            if document is None:
                raise NotFoundError("Document not found")
            try:
                get_object_store().remove([document["file_path"]])
            except Exception as e:
                logger.error("Failed to remove object %s: %s", document["file_path"], e)
            resource_operations.delete_document(conn, tenant_id, document_id)
        finally:
            conn.close()
        logger.info("Document %s deleted", document_id)
        return None

    return capture("delete_document", delete)
