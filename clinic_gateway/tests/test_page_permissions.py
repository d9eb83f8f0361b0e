"""
Page permission tests: default-deny checks, the seeded catalogue, toggling,
and route gating by page.
"""

import pytest

from clinic_gateway.app.db import role_operations
from clinic_gateway.app.db.migrate import get_connection
from clinic_gateway.app.errors import NotFoundError
from clinic_gateway.app.services import role_service
from clinic_gateway.tests.auth_helpers import (
    create_admin_headers,
    create_jwt_headers,
    create_practitioner_headers,
)
from clinic_gateway.tests.test_helpers import TENANT_A, TEST_ADMIN


def _seed(tenant_id=TENANT_A):
    conn = get_connection()
    try:
        return role_service.seed_page_permissions(conn, tenant_id, TEST_ADMIN["sub"])
    finally:
        conn.close()


def _permission(tenant_id, page_path):
    for permission in role_service.list_page_permissions(tenant_id):
        if permission["page_path"] == page_path:
            return permission
    raise AssertionError(f"no permission row for {page_path}")


class TestIsPageAllowed:
    def test_missing_page_denies_everyone_but_owner(self):
        assert role_service.is_page_allowed([], "/practice/billing", "admin") is False
        assert role_service.is_page_allowed([], "/practice/billing", "practitioner") is False
        assert role_service.is_page_allowed([], "/practice/billing", "owner") is True

    def test_listed_role_is_allowed(self):
        permissions = [{"page_path": "/practice/notes", "roles": ["admin"]}]

        assert role_service.is_page_allowed(permissions, "/practice/notes", "admin") is True
        assert role_service.is_page_allowed(permissions, "/practice/notes", "practitioner") is False

    def test_component_rows_only_match_their_component(self):
        permissions = [
            {"page_path": "/practice/notes", "component_name": "export", "roles": ["admin"]},
        ]

        assert role_service.is_page_allowed(permissions, "/practice/notes", "admin") is False
        assert (
            role_service.is_page_allowed(permissions, "/practice/notes", "admin", "export")
            is True
        )


class TestSeededCatalogue:
    def test_seed_creates_default_pages(self):
        count = _seed()

        permissions = role_service.list_page_permissions(TENANT_A)
        assert count == len(role_service.DEFAULT_PAGES)
        assert {p["page_path"] for p in permissions} == {
            page_path for page_path, _, _ in role_service.DEFAULT_PAGES
        }
        assert _permission(TENANT_A, "/practice/settings")["roles"] == ["owner", "admin"]

    def test_registered_practice_has_catalogue(self, practice):
        permissions = role_service.list_page_permissions(practice["tenant_id"])

        assert len(permissions) == len(role_service.DEFAULT_PAGES)


class TestUpdatePagePermissions:
    def test_toggle_persists(self):
        _seed()
        settings = _permission(TENANT_A, "/practice/settings")

        roles = role_service.update_page_permissions(
            TENANT_A, settings["id"], "practitioner", settings["roles"], TEST_ADMIN["sub"]
        )

        assert roles == ["owner", "admin", "practitioner"]
        assert _permission(TENANT_A, "/practice/settings")["roles"] == roles

    def test_toggle_twice_restores(self):
        _seed()
        settings = _permission(TENANT_A, "/practice/settings")
        original = settings["roles"]

        once = role_service.update_page_permissions(
            TENANT_A, settings["id"], "practitioner", original, None
        )
        twice = role_service.update_page_permissions(
            TENANT_A, settings["id"], "practitioner", once, None
        )

        assert sorted(twice) == sorted(original)
        assert sorted(_permission(TENANT_A, "/practice/settings")["roles"]) == sorted(original)

    def test_unknown_page_is_not_found(self):
        with pytest.raises(NotFoundError):
            role_service.update_page_permissions(TENANT_A, "missing", "admin", [], None)


class TestPageGatedRoutes:
    def test_unseeded_tenant_denies_admin(self, client):
        response = client.get("/clients", headers=create_admin_headers(TENANT_A))

        assert response.status_code == 403
        assert response.json()["error"] == "insufficient_permissions"

    def test_unseeded_tenant_allows_owner(self, client):
        response = client.get("/clients", headers=create_jwt_headers(TENANT_A, role="owner"))

        assert response.status_code == 200
        assert response.json() == []

    def test_seeded_page_allows_practitioner(self, client):
        _seed()

        response = client.get("/clients", headers=create_practitioner_headers(TENANT_A))

        assert response.status_code == 200

    def test_practitioner_denied_settings(self, client):
        _seed()

        response = client.get("/configurations", headers=create_practitioner_headers(TENANT_A))

        assert response.status_code == 403

    def test_custom_role_gains_access_after_toggle(self, client):
        _seed()
        calendar = _permission(TENANT_A, "/practice/calendar")
        headers = create_jwt_headers(TENANT_A, role="biller")

        assert client.get("/sessions", headers=headers).status_code == 403

        toggle = client.put(
            f"/page-permissions/{calendar['id']}/toggle",
            json={"role": "biller", "current_roles": calendar["roles"]},
            headers=create_admin_headers(TENANT_A),
        )
        assert toggle.status_code == 200
        assert "biller" in toggle.json()["roles"]

        assert client.get("/sessions", headers=headers).status_code == 200

    def test_rows_are_tenant_scoped(self):
        _seed()
        conn = get_connection()
        try:
            assert role_operations.list_page_permissions(conn, "other-tenant") == []
        finally:
            conn.close()
