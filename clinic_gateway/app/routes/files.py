"""
Document and client-resource endpoints.

Uploads are multipart form posts. Downloads are addressed by storage path
and only succeed for paths indexed in the caller's practice.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import Response

from clinic_gateway.app.routes.route_utils import unwrap
from clinic_gateway.app.security.auth import Identity, require_page
from clinic_gateway.app.services import document_service, resource_service
from clinic_gateway.app.services.uploads import Upload

router = APIRouter(tags=["files"])

clients_page = require_page("/practice/clients")


async def _read_upload(file: Optional[UploadFile]) -> Optional[Upload]:
    if file is None:
        return None
    data = await file.read()
    return Upload(filename=file.filename or "", data=data, content_type=file.content_type)


def _attachment(content: bytes, mime_type: str) -> Response:
    return Response(
        content=content,
        media_type=mime_type,
        headers={"Content-Disposition": "attachment"},
    )


# ============================================================================
# DOCUMENTS
# ============================================================================


@router.get("/documents")
async def list_documents(
    client_id: Optional[str] = Query(default=None),
    identity: Identity = Depends(clients_page),
):
    return unwrap(document_service.get_client_documents(identity.tenant_id, client_id))


@router.post("/documents/upload", status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile = File(...),
    client_id: Optional[str] = Form(default=None),
    document_type: str = Form(default="client_upload"),
    is_shared_with_client: bool = Form(default=False),
    identity: Identity = Depends(clients_page),
):
    upload = await _read_upload(file)
    return unwrap(
        document_service.upload_document(
            identity,
            upload,
            client_id=client_id or None,
            document_type=document_type,
            is_shared_with_client=is_shared_with_client,
        )
    )


@router.get("/documents/download")
async def download_document(
    file_path: str = Query(...),
    identity: Identity = Depends(clients_page),
):
    document = unwrap(document_service.download_document(identity.tenant_id, file_path))
    return _attachment(document["content"], document["mime_type"])


@router.delete("/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(document_id: str, identity: Identity = Depends(clients_page)):
    unwrap(document_service.delete_document(identity.tenant_id, document_id))


# ============================================================================
# CLIENT RESOURCES
# ============================================================================


@router.get("/client-resources")
async def list_client_resources(
    client_id: str = Query(...),
    identity: Identity = Depends(clients_page),
):
    return unwrap(resource_service.get_client_resources(identity.tenant_id, client_id))


@router.post("/client-resources", status_code=status.HTTP_201_CREATED)
async def create_client_resource(
    client_id: str = Form(...),
    resource_type: str = Form(...),
    title: str = Form(...),
    description: Optional[str] = Form(default=None),
    url: Optional[str] = Form(default=None),
    file: Optional[UploadFile] = File(default=None),
    identity: Identity = Depends(clients_page),
):
    payload = {
        "client_id": client_id,
        "resource_type": resource_type,
        "title": title,
        "description": description,
        "url": url,
    }
    upload = await _read_upload(file)
    return unwrap(resource_service.create_resource(identity, payload, upload))


@router.get("/client-resources/download")
async def download_client_resource(
    file_path: str = Query(...),
    identity: Identity = Depends(clients_page),
):
    resource = unwrap(resource_service.download_resource(identity.tenant_id, file_path))
    return _attachment(resource["content"], resource["mime_type"])


@router.delete("/client-resources/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client_resource(resource_id: str, identity: Identity = Depends(clients_page)):
    unwrap(resource_service.delete_resource(identity.tenant_id, resource_id, identity.sub))
