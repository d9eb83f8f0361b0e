"""
Pydantic models for the practice gateway.
"""

from clinic_gateway.app.models.accounts import (
    AddUserRequest,
    LoginRequest,
    RegisterRequest,
    RoleRequest,
    TenantRequest,
)

__all__ = ["AddUserRequest", "LoginRequest", "RegisterRequest", "RoleRequest", "TenantRequest"]
