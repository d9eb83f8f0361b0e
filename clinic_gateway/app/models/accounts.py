"""
Account, tenant and authorization models.

Note: tenant_id is derived from JWT authentication, never from request bodies.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """Sign-up of a new practice and its owner."""

    email: str = Field(..., description="Owner email address")
    password: str = Field(..., description="Owner password (min 8 characters)")
    first_name: str
    last_name: str
    practice_name: Optional[str] = Field(default=None, description="Defaults to '<first> <last> Practice'")
    license_number: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., description="Email verification token issued at registration")


class AddUserRequest(BaseModel):
    """Assign a (possibly new) user to the caller's practice."""

    email: str
    first_name: str
    last_name: str
    role: str = Field(..., description="Base or custom role name")


class TenantUser(BaseModel):
    user_id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email_verified: bool = False
    role: Optional[str] = None
    tenant_id: str
    created_at_utc: Optional[str] = None


class TenantRequest(BaseModel):
    practice_name: str
    status: str = "active"


class TenantStatusRequest(BaseModel):
    status: str = Field(..., description="active or suspended")


class Tenant(BaseModel):
    tenant_id: str
    practice_name: str
    status: str
    created_at_utc: str
    updated_at_utc: str


class RoleRequest(BaseModel):
    role_name: str
    role_description: Optional[str] = None


class Role(BaseModel):
    """A role definition. Base roles have no id and is_base=True."""

    id: Optional[str] = None
    tenant_id: str
    role_name: str
    role_description: Optional[str] = None
    is_default: bool = False
    is_base: bool = False
    created_by: Optional[str] = None
    created_at_utc: Optional[str] = None
    updated_at_utc: Optional[str] = None


class UserRolesResponse(BaseModel):
    roles: List[Role]
    available_roles: List[str]
    dropdown_roles: List[str]


class PagePermission(BaseModel):
    id: str
    tenant_id: str
    page_path: str
    page_name: str
    component_name: Optional[str] = None
    roles: List[str]
    updated_by: Optional[str] = None
    created_at_utc: str
    updated_at_utc: str


class TogglePermissionRequest(BaseModel):
    """Toggle one role on a page, relative to the roles the caller last saw."""

    role: str
    current_roles: List[str] = Field(default_factory=list)
