"""
Security boundary tests.

Covers token handling (missing, expired, malformed, wrong secret), tenant
isolation of records, and error bodies that never echo request data.
"""

import pytest

from clinic_gateway.tests.auth_helpers import create_owner_headers
from clinic_gateway.tests.test_helpers import (
    TENANT_A,
    TENANT_B,
    create_auth_headers,
    generate_expired_jwt,
    generate_malformed_jwt,
    generate_test_jwt,
)

PROTECTED = [
    ("get", "/users/me"),
    ("get", "/clients"),
    ("get", "/sessions"),
    ("get", "/documents"),
    ("get", "/roles"),
    ("get", "/page-permissions"),
    ("get", "/branding"),
    ("get", "/tenants"),
]


class TestAuthentication:
    @pytest.mark.parametrize("method,path", PROTECTED)
    def test_missing_token_is_401(self, client, method, path):
        response = getattr(client, method)(path)

        assert response.status_code == 401
        assert response.json()["error"] == "missing_token"

    def test_expired_token(self, client):
        response = client.get("/clients", headers=create_auth_headers(generate_expired_jwt()))

        assert response.status_code == 401
        assert response.json() == {"error": "invalid_token", "message": "Token validation failed"}

    def test_malformed_token(self, client):
        response = client.get("/clients", headers=create_auth_headers(generate_malformed_jwt()))

        assert response.status_code == 401

    def test_wrong_secret(self, client):
        token = generate_test_jwt(tenant_id=TENANT_A, secret_key="not-the-server-secret")

        response = client.get("/clients", headers=create_auth_headers(token))

        assert response.status_code == 401

    def test_missing_tenant_claim(self, client):
        token = generate_test_jwt(tenant_id="")

        response = client.get("/clients", headers=create_auth_headers(token))

        assert response.status_code == 401
        assert response.json()["error"] == "missing_claim"


class TestTenantIsolation:
    def test_records_invisible_across_practices(self, client):
        a = create_owner_headers(TENANT_A)
        b = create_owner_headers(TENANT_B)
        created = client.post("/clients", json={"name": "Private Person"}, headers=a).json()
        client.post(
            "/sessions",
            json={
                "client_id": created["id"],
                "session_date": "2026-03-02",
                "session_type": "individual",
            },
            headers=a,
        )

        assert client.get("/clients", headers=b).json() == []
        assert client.get("/sessions", headers=b).json() == []
        assert client.get(f"/clients/{created['id']}/goals", headers=b).status_code == 404

    def test_tenant_comes_from_token_not_body(self, client):
        response = client.post(
            "/clients",
            json={"name": "Jamie", "tenant_id": TENANT_B},
            headers=create_owner_headers(TENANT_A),
        )

        assert response.json()["tenant_id"] == TENANT_A


class TestErrorBodies:
    def test_validation_error_does_not_echo_values(self, client):
        response = client.post(
            "/clients",
            json={"name": "Secret Name", "risk_score": "very-sensitive-value"},
            headers=create_owner_headers(TENANT_A),
        )

        assert response.status_code == 422
        assert "very-sensitive-value" not in response.text
        assert response.json()["details"][0]["field"] == "body -> risk_score"

    def test_unknown_route_is_sanitized(self, client):
        response = client.get("/definitely-not-here")

        assert response.status_code == 404
        assert set(response.json()) == {"error", "message"}


class TestPublicRoutes:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["status"] == "operational"

    @pytest.mark.parametrize("path", ["/auth/login", "/auth/register", "/auth/verify-email"])
    def test_auth_routes_are_post_only(self, client, path):
        assert client.get(path).status_code == 405
