"""
Authentication helpers building JWT headers for each practice role.
"""

from clinic_gateway.app.security.auth import Identity
from clinic_gateway.tests.test_helpers import generate_test_jwt, user_id_for


def create_jwt_headers(tenant_id: str, role: str = "owner", sub: str = None) -> dict:
    """
    Create JWT authentication headers for testing.

    Args:
        tenant_id: Tenant identifier (derived from JWT, not header)
        role: Tenant role
        sub: User ID (stable UUID per tenant/role if not provided)

    Returns:
        Dictionary with Authorization header
    """
    if sub is None:
        sub = user_id_for(tenant_id, role)

    token = generate_test_jwt(sub=sub, tenant_id=tenant_id, role=role)

    return {"Authorization": f"Bearer {token}"}


def create_owner_headers(tenant_id: str, sub: str = None) -> dict:
    """Owner: always allowed everywhere in their practice."""
    return create_jwt_headers(tenant_id, role="owner", sub=sub)


def create_admin_headers(tenant_id: str, sub: str = None) -> dict:
    return create_jwt_headers(tenant_id, role="admin", sub=sub)


def create_practitioner_headers(tenant_id: str, sub: str = None) -> dict:
    return create_jwt_headers(tenant_id, role="practitioner", sub=sub)


def create_platform_admin_headers(tenant_id: str = "platform", sub: str = None) -> dict:
    return create_jwt_headers(tenant_id, role="platform_admin", sub=sub)


def make_identity(tenant_id: str, role: str = "owner", sub: str = None) -> Identity:
    """Identity object for calling services directly."""
    return Identity(sub=sub or user_id_for(tenant_id, role), tenant_id=tenant_id, role=role)
