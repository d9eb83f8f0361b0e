"""
User and tenant-assignment endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from clinic_gateway.app.models.accounts import AddUserRequest, TenantUser
from clinic_gateway.app.security.auth import (
    MANAGER_ROLES,
    Identity,
    get_tenant_identity,
    require_any_role,
)
from clinic_gateway.app.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=TenantUser)
async def get_me(identity: Identity = Depends(get_tenant_identity)):
    """The caller's profile and role in their practice."""
    return user_service.get_user_profile(identity.sub, identity.tenant_id)


@router.get("", response_model=List[TenantUser])
async def list_users(identity: Identity = Depends(require_any_role(*MANAGER_ROLES))):
    return user_service.list_tenant_users(identity.tenant_id)


@router.post("", response_model=TenantUser, status_code=status.HTTP_201_CREATED)
async def add_user(
    body: AddUserRequest,
    identity: Identity = Depends(require_any_role(*MANAGER_ROLES)),
):
    """Assign a user to the caller's practice (registering the identity if new)."""
    return user_service.add_user(
        body.email,
        body.first_name,
        body.last_name,
        body.role,
        identity.tenant_id,
        identity.sub,
    )
