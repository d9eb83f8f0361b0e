"""
Client resource tests: upload/index consistency, soft delete and
download scoping.
"""

import logging
import sqlite3

import pytest

from clinic_gateway.app.db import resource_operations
from clinic_gateway.app.errors import (
    AuthError,
    NotFoundError,
    StorageError,
    UnknownError,
    ValidationError,
)
from clinic_gateway.app.services import record_service, resource_service
from clinic_gateway.app.services.object_store import LocalObjectStore, set_object_store
from clinic_gateway.app.services.uploads import Upload
from clinic_gateway.tests.auth_helpers import create_owner_headers, make_identity
from clinic_gateway.tests.test_helpers import TENANT_A, TENANT_B

PDF_BYTES = b"%PDF-1.4\n" + b"\x00" * (2 * 1024 * 1024 - 9)


class RemoveFailsStore(LocalObjectStore):
    def remove(self, paths):
        raise StorageError("Failed to remove file")


class UploadFailsStore(LocalObjectStore):
    def upload(self, path, data, content_type=None):
        raise OSError("disk full")


def _stored_files(store):
    if not store.root.exists():
        return []
    return [p for p in store.root.rglob("*") if p.is_file()]


@pytest.fixture
def owner():
    return make_identity(TENANT_A, "owner")


@pytest.fixture
def client_record(owner):
    result = record_service.create_client(TENANT_A, {"name": "Jamie Doe"}, owner.sub)
    assert result.ok
    return result.data


def _document_payload(client_record, **overrides):
    payload = {
        "client_id": client_record["id"],
        "resource_type": "document",
        "title": "Sleep hygiene handout",
        "description": "Read before next session",
    }
    payload.update(overrides)
    return payload


def _pdf_upload():
    return Upload(filename="Handout.PDF", data=PDF_BYTES, content_type="application/pdf")


class TestCreateResourceValidation:
    def test_requires_identity(self, client_record):
        with pytest.raises(AuthError):
            resource_service.create_resource(None, _document_payload(client_record), _pdf_upload())

    def test_rejects_malformed_client_id(self, owner, client_record):
        with pytest.raises(ValidationError):
            resource_service.create_resource(
                owner, _document_payload(client_record, client_id="client-1"), _pdf_upload()
            )

    def test_rejects_empty_title(self, owner, client_record):
        with pytest.raises(ValidationError):
            resource_service.create_resource(
                owner, _document_payload(client_record, title="   "), _pdf_upload()
            )

    def test_document_needs_a_file(self, owner, client_record):
        with pytest.raises(ValidationError):
            resource_service.create_resource(owner, _document_payload(client_record), None)

    def test_url_needs_a_url(self, owner, client_record):
        with pytest.raises(ValidationError):
            resource_service.create_resource(
                owner, _document_payload(client_record, resource_type="url")
            )

    def test_unknown_type(self, owner, client_record):
        with pytest.raises(ValidationError):
            resource_service.create_resource(
                owner, _document_payload(client_record, resource_type="video"), _pdf_upload()
            )


class TestCreateResource:
    def test_document_resource_is_indexed(self, owner, client_record, object_store):
        result = resource_service.create_resource(
            owner, _document_payload(client_record), _pdf_upload()
        )

        assert result.ok
        resource = result.data
        assert resource["file_size"] == 2097152
        assert resource["mime_type"] == "application/pdf"
        assert resource["is_active"] is True
        assert resource["created_by"] == owner.sub
        assert resource["file_path"].startswith(f"{owner.sub}/")
        assert resource["file_path"].endswith(".pdf")
        assert object_store.exists(resource["file_path"])

    def test_missing_content_type_defaults(self, owner, client_record):
        upload = Upload(filename="notes", data=b"hello", content_type=None)

        result = resource_service.create_resource(owner, _document_payload(client_record), upload)

        assert result.data["mime_type"] == "application/octet-stream"
        assert result.data["file_path"].endswith(".bin")

    def test_url_resource_stores_nothing(self, owner, client_record, object_store):
        result = resource_service.create_resource(
            owner,
            _document_payload(client_record, resource_type="url", url="https://example.org/breathing"),
        )

        assert result.ok
        assert result.data["url"] == "https://example.org/breathing"
        assert result.data["file_path"] is None
        assert _stored_files(object_store) == []

    def test_failed_insert_leaves_no_object(self, owner, client_record, object_store, monkeypatch):
        def boom(*args, **kwargs):
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr(resource_operations, "insert_resource", boom)

        result = resource_service.create_resource(
            owner, _document_payload(client_record), _pdf_upload()
        )

        assert isinstance(result.error, UnknownError)
        assert result.data is None
        assert _stored_files(object_store) == []

    def test_failed_upload_creates_no_row(self, owner, client_record, tmp_path):
        set_object_store(UploadFailsStore(str(tmp_path / "failing")))

        result = resource_service.create_resource(
            owner, _document_payload(client_record), _pdf_upload()
        )

        assert isinstance(result.error, StorageError)
        assert resource_service.get_client_resources(TENANT_A, client_record["id"]).data == []

    def test_unknown_client_is_not_found(self, owner, object_store):
        payload = {
            "client_id": "0b9a3f8e-1c2d-4e5f-8a9b-0c1d2e3f4a5b",
            "resource_type": "document",
            "title": "Handout",
        }

        result = resource_service.create_resource(owner, payload, _pdf_upload())

        assert isinstance(result.error, NotFoundError)
        assert _stored_files(object_store) == []


class TestDeleteResource:
    def test_delete_deactivates_and_removes_object(self, owner, client_record, object_store):
        resource = resource_service.create_resource(
            owner, _document_payload(client_record), _pdf_upload()
        ).data

        result = resource_service.delete_resource(TENANT_A, resource["id"], owner.sub)

        assert result.ok
        assert not object_store.exists(resource["file_path"])
        assert resource_service.get_client_resources(TENANT_A, client_record["id"]).data == []

    def test_remove_failure_still_deactivates(self, owner, client_record, tmp_path, caplog):
        store = RemoveFailsStore(str(tmp_path / "objects"))
        set_object_store(store)
        resource = resource_service.create_resource(
            owner, _document_payload(client_record), _pdf_upload()
        ).data

        with caplog.at_level(logging.ERROR):
            result = resource_service.delete_resource(TENANT_A, resource["id"], owner.sub)

        assert result.ok
        assert "Failed to remove object" in caplog.text
        assert resource_service.get_client_resources(TENANT_A, client_record["id"]).data == []

    def test_other_tenant_cannot_delete(self, owner, client_record):
        resource = resource_service.create_resource(
            owner, _document_payload(client_record), _pdf_upload()
        ).data

        result = resource_service.delete_resource(TENANT_B, resource["id"], owner.sub)

        assert isinstance(result.error, NotFoundError)
        assert len(resource_service.get_client_resources(TENANT_A, client_record["id"]).data) == 1


class TestDownloadResource:
    def test_download_active_resource(self, owner, client_record):
        resource = resource_service.create_resource(
            owner, _document_payload(client_record), _pdf_upload()
        ).data

        result = resource_service.download_resource(TENANT_A, resource["file_path"])

        assert result.ok
        assert result.data["content"] == PDF_BYTES
        assert result.data["mime_type"] == "application/pdf"

    def test_deleted_resource_is_not_downloadable(self, owner, client_record, object_store):
        resource = resource_service.create_resource(
            owner, _document_payload(client_record), _pdf_upload()
        ).data
        resource_service.delete_resource(TENANT_A, resource["id"], owner.sub)

        result = resource_service.download_resource(TENANT_A, resource["file_path"])

        assert isinstance(result.error, NotFoundError)

    def test_other_tenant_cannot_download(self, owner, client_record):
        resource = resource_service.create_resource(
            owner, _document_payload(client_record), _pdf_upload()
        ).data

        result = resource_service.download_resource(TENANT_B, resource["file_path"])

        assert isinstance(result.error, NotFoundError)

    def test_unindexed_object_is_not_downloadable(self, object_store):
        object_store.upload("stray/file.txt", b"secret", "text/plain")

        result = resource_service.download_resource(TENANT_A, "stray/file.txt")

        assert isinstance(result.error, NotFoundError)


class TestResourceEndpoints:
    def test_upload_list_download_delete(self, client, owner, client_record):
        headers = create_owner_headers(TENANT_A)

        created = client.post(
            "/client-resources",
            data={
                "client_id": client_record["id"],
                "resource_type": "document",
                "title": "Worksheet",
            },
            files={"file": ("worksheet.txt", b"breathe in", "text/plain")},
            headers=headers,
        )
        assert created.status_code == 201
        resource = created.json()

        listed = client.get(
            "/client-resources", params={"client_id": client_record["id"]}, headers=headers
        )
        assert [r["id"] for r in listed.json()] == [resource["id"]]

        downloaded = client.get(
            "/client-resources/download",
            params={"file_path": resource["file_path"]},
            headers=headers,
        )
        assert downloaded.status_code == 200
        assert downloaded.content == b"breathe in"

        deleted = client.delete(f"/client-resources/{resource['id']}", headers=headers)
        assert deleted.status_code == 204

        gone = client.get(
            "/client-resources/download",
            params={"file_path": resource["file_path"]},
            headers=headers,
        )
        assert gone.status_code == 404

    def test_invalid_client_id_returns_422(self, client):
        response = client.post(
            "/client-resources",
            data={"client_id": "nope", "resource_type": "url", "title": "Link", "url": "https://x.org"},
            headers=create_owner_headers(TENANT_A),
        )

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"
