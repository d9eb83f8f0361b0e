"""
Practice document tests: tenant-prefixed storage keys and hard delete.
"""

import logging
import sqlite3

import pytest

from clinic_gateway.app.db import resource_operations
from clinic_gateway.app.errors import NotFoundError, StorageError, ValidationError
from clinic_gateway.app.services import document_service, record_service
from clinic_gateway.app.services.object_store import LocalObjectStore, set_object_store
from clinic_gateway.app.services.uploads import Upload
from clinic_gateway.tests.auth_helpers import create_owner_headers, make_identity
from clinic_gateway.tests.test_helpers import TENANT_A, TENANT_B


class RemoveFailsStore(LocalObjectStore):
    def remove(self, paths):
        raise StorageError("Failed to remove file")


@pytest.fixture
def owner():
    return make_identity(TENANT_A, "owner")


def _upload(name="intake.pdf", data=b"%PDF-1.4 intake form"):
    return Upload(filename=name, data=data, content_type="application/pdf")


class TestUploadDocument:
    def test_key_is_tenant_prefixed(self, owner, object_store):
        result = document_service.upload_document(owner, _upload())

        assert result.ok
        document = result.data
        assert document["file_path"].startswith(f"{TENANT_A}/{owner.sub}/")
        assert document["name"] == "intake.pdf"
        assert document["file_size"] == len(b"%PDF-1.4 intake form")
        assert document["document_type"] == "client_upload"
        assert object_store.exists(document["file_path"])

    def test_linked_to_client(self, owner):
        client = record_service.create_client(TENANT_A, {"name": "Jamie"}, owner.sub).data

        document = document_service.upload_document(owner, _upload(), client_id=client["id"]).data

        listed = document_service.get_client_documents(TENANT_A, client["id"]).data
        assert [d["id"] for d in listed] == [document["id"]]

    def test_unknown_client_uploads_nothing(self, owner, object_store):
        result = document_service.upload_document(
            owner, _upload(), client_id="0b9a3f8e-1c2d-4e5f-8a9b-0c1d2e3f4a5b"
        )

        assert isinstance(result.error, NotFoundError)
        assert not object_store.root.exists() or not any(object_store.root.rglob("*.pdf"))

    def test_rejects_unknown_type(self, owner):
        with pytest.raises(ValidationError):
            document_service.upload_document(owner, _upload(), document_type="x-ray")

    def test_rejects_empty_file(self, owner):
        with pytest.raises(ValidationError):
            document_service.upload_document(owner, _upload(data=b""))

    def test_rejects_oversized_file(self, owner, monkeypatch):
        monkeypatch.setenv("MAX_UPLOAD_BYTES", "4")

        with pytest.raises(ValidationError):
            document_service.upload_document(owner, _upload())

    def test_failed_insert_removes_object(self, owner, object_store, monkeypatch):
        def boom(*args, **kwargs):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(resource_operations, "insert_document", boom)

        result = document_service.upload_document(owner, _upload())

        assert result.error is not None
        assert not any(p.is_file() for p in object_store.root.rglob("*"))


class TestDeleteDocument:
    def test_hard_delete(self, owner, object_store):
        document = document_service.upload_document(owner, _upload()).data

        result = document_service.delete_document(TENANT_A, document["id"])

        assert result.ok
        assert not object_store.exists(document["file_path"])
        assert document_service.get_client_documents(TENANT_A).data == []

    def test_remove_failure_is_logged_and_row_deleted(self, owner, tmp_path, caplog):
        set_object_store(RemoveFailsStore(str(tmp_path / "objects")))
        document = document_service.upload_document(owner, _upload()).data

        with caplog.at_level(logging.ERROR):
            result = document_service.delete_document(TENANT_A, document["id"])

        assert result.ok
        assert "Failed to remove object" in caplog.text
        assert document_service.get_client_documents(TENANT_A).data == []

    def test_other_tenant_gets_not_found(self, owner):
        document = document_service.upload_document(owner, _upload()).data

        result = document_service.delete_document(TENANT_B, document["id"])

        assert isinstance(result.error, NotFoundError)


class TestDocumentEndpoints:
    def test_upload_and_download(self, client):
        headers = create_owner_headers(TENANT_A)

        uploaded = client.post(
            "/documents/upload",
            files={"file": ("plan.pdf", b"%PDF plan", "application/pdf")},
            data={"document_type": "treatment_plan"},
            headers=headers,
        )
        assert uploaded.status_code == 201
        document = uploaded.json()
        assert document["document_type"] == "treatment_plan"

        downloaded = client.get(
            "/documents/download", params={"file_path": document["file_path"]}, headers=headers
        )
        assert downloaded.status_code == 200
        assert downloaded.content == b"%PDF plan"
        assert downloaded.headers["content-type"].startswith("application/pdf")

    def test_cross_tenant_download_is_404(self, client):
        uploaded = client.post(
            "/documents/upload",
            files={"file": ("plan.pdf", b"%PDF plan", "application/pdf")},
            headers=create_owner_headers(TENANT_A),
        ).json()

        response = client.get(
            "/documents/download",
            params={"file_path": uploaded["file_path"]},
            headers=create_owner_headers(TENANT_B),
        )

        assert response.status_code == 404
        assert response.json() == {"error": "not_found", "message": "Document not found"}
