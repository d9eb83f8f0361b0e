"""
Tests for custom roles and the role lists offered to the UI.
"""

import pytest

from clinic_gateway.app.db import role_operations
from clinic_gateway.app.errors import ConflictError, NotFoundError, ValidationError
from clinic_gateway.app.services import role_service
from clinic_gateway.tests.auth_helpers import create_admin_headers, create_practitioner_headers
from clinic_gateway.tests.test_helpers import TENANT_A, TENANT_B, TEST_ADMIN


def _custom_names(tenant_id):
    return [role["role_name"] for role in role_service.list_custom_roles(tenant_id)]


class TestAddRole:
    def test_added_role_is_listed_exactly_once(self):
        role = role_service.add_role(TENANT_A, "Biller", "Handles invoices", TEST_ADMIN["sub"])

        assert role["role_name"] == "Biller"
        assert role["is_base"] is False
        assert _custom_names(TENANT_A) == ["Biller"]

        names = [r["role_name"] for r in role_service.list_roles(TENANT_A)]
        assert names == ["owner", "admin", "practitioner", "Biller"]

    def test_name_is_trimmed(self):
        role = role_service.add_role(TENANT_A, "  Intake  ", None, None)
        assert role["role_name"] == "Intake"

    def test_duplicate_name_conflicts_without_new_row(self):
        role_service.add_role(TENANT_A, "Biller", None, None)

        with pytest.raises(ConflictError) as exc:
            role_service.add_role(TENANT_A, "Biller", None, None)

        assert exc.value.message == "Role name already exists"
        assert _custom_names(TENANT_A) == ["Biller"]

    def test_names_are_case_sensitive(self):
        role_service.add_role(TENANT_A, "Biller", None, None)
        role_service.add_role(TENANT_A, "biller", None, None)

        assert sorted(_custom_names(TENANT_A)) == ["Biller", "biller"]

    @pytest.mark.parametrize("name", ["owner", "admin", "practitioner"])
    def test_base_role_names_are_reserved(self, name):
        with pytest.raises(ConflictError):
            role_service.add_role(TENANT_A, name, None, None)
        assert _custom_names(TENANT_A) == []

    def test_blank_name_rejected_before_database(self, monkeypatch):
        def fail():
            raise AssertionError("database must not be opened")

        monkeypatch.setattr(role_service, "get_connection", fail)

        with pytest.raises(ValidationError):
            role_service.add_role(TENANT_A, "   ", None, None)

    def test_same_name_allowed_in_other_tenant(self):
        role_service.add_role(TENANT_A, "Biller", None, None)
        role_service.add_role(TENANT_B, "Biller", None, None)

        assert _custom_names(TENANT_A) == ["Biller"]
        assert _custom_names(TENANT_B) == ["Biller"]

    def test_unique_constraint_decides_concurrent_add(self, monkeypatch):
        role_service.add_role(TENANT_A, "Biller", None, None)
        # Another request inserted the name after this one checked for it
        monkeypatch.setattr(role_operations, "find_role_by_name", lambda conn, tenant_id, name: None)

        with pytest.raises(ConflictError) as exc:
            role_service.add_role(TENANT_A, "Biller", None, None)

        assert exc.value.message == "Role name already exists"
        assert _custom_names(TENANT_A) == ["Biller"]


class TestUpdateAndDeleteRole:
    def test_rename_to_own_name_is_not_a_conflict(self):
        role = role_service.add_role(TENANT_A, "Biller", None, None)

        updated = role_service.update_role(TENANT_A, role["id"], "Biller")

        assert updated["role_name"] == "Biller"

    def test_rename_to_existing_name_conflicts(self):
        role_service.add_role(TENANT_A, "Biller", None, None)
        intake = role_service.add_role(TENANT_A, "Intake", None, None)

        with pytest.raises(ConflictError):
            role_service.update_role(TENANT_A, intake["id"], "Biller")

    def test_unique_constraint_decides_concurrent_rename(self, monkeypatch):
        role_service.add_role(TENANT_A, "Biller", None, None)
        intake = role_service.add_role(TENANT_A, "Intake", None, None)
        monkeypatch.setattr(role_operations, "find_role_by_name", lambda conn, tenant_id, name: None)

        with pytest.raises(ConflictError):
            role_service.update_role(TENANT_A, intake["id"], "Biller")

        assert sorted(_custom_names(TENANT_A)) == ["Biller", "Intake"]

    def test_rename(self):
        role = role_service.add_role(TENANT_A, "Biller", None, None)

        updated = role_service.update_role(TENANT_A, role["id"], "Billing Lead")

        assert updated["role_name"] == "Billing Lead"
        assert _custom_names(TENANT_A) == ["Billing Lead"]

    def test_rename_other_tenants_role_is_not_found(self):
        role = role_service.add_role(TENANT_A, "Biller", None, None)

        with pytest.raises(NotFoundError):
            role_service.update_role(TENANT_B, role["id"], "Stolen")

    def test_delete(self):
        role = role_service.add_role(TENANT_A, "Biller", None, None)

        role_service.delete_role(TENANT_A, role["id"])

        assert _custom_names(TENANT_A) == []
        with pytest.raises(NotFoundError):
            role_service.delete_role(TENANT_A, role["id"])


class TestRoleLists:
    def test_toggle_twice_restores_original_set(self):
        original = ["owner", "admin"]

        toggled = role_service.toggle_role(original, "practitioner")
        assert toggled == ["owner", "admin", "practitioner"]

        restored = role_service.toggle_role(toggled, "practitioner")
        assert sorted(restored) == sorted(original)

    def test_toggle_removes_present_role(self):
        assert role_service.toggle_role(["owner", "admin"], "admin") == ["owner"]

    def test_available_roles_dedupes_base_names(self):
        custom = [{"role_name": "admin"}, {"role_name": "biller"}]

        assert role_service.get_available_roles(custom) == [
            "owner",
            "admin",
            "practitioner",
            "biller",
        ]

    def test_available_roles_accepts_plain_names(self):
        assert role_service.get_available_roles(["biller", "biller"]) == [
            "owner",
            "admin",
            "practitioner",
            "biller",
        ]

    def test_dropdown_roles_exclude_owner(self):
        assert role_service.get_user_dropdown_roles([{"role_name": "biller"}]) == [
            "admin",
            "practitioner",
            "biller",
        ]


class TestRoleEndpoints:
    def test_admin_creates_role(self, client):
        response = client.post(
            "/roles",
            json={"role_name": "Biller", "role_description": "Invoices"},
            headers=create_admin_headers(TENANT_A),
        )

        assert response.status_code == 201
        assert response.json()["role_name"] == "Biller"

    def test_duplicate_role_returns_409(self, client):
        headers = create_admin_headers(TENANT_A)
        client.post("/roles", json={"role_name": "Biller"}, headers=headers)

        response = client.post("/roles", json={"role_name": "Biller"}, headers=headers)

        assert response.status_code == 409
        assert response.json() == {"error": "conflict", "message": "Role name already exists"}

    def test_practitioner_cannot_create_roles(self, client):
        response = client.post(
            "/roles",
            json={"role_name": "Biller"},
            headers=create_practitioner_headers(TENANT_A),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "insufficient_permissions"

    def test_user_roles_lists(self, client):
        headers = create_admin_headers(TENANT_A)
        client.post("/roles", json={"role_name": "Biller"}, headers=headers)

        response = client.get("/user-roles", headers=headers)

        assert response.status_code == 200
        body = response.json()
        assert [role["role_name"] for role in body["roles"]] == ["Biller"]
        assert body["available_roles"] == ["owner", "admin", "practitioner", "Biller"]
        assert body["dropdown_roles"] == ["admin", "practitioner", "Biller"]
