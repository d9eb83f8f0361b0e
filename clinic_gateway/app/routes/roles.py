"""
Role and page-permission endpoints.

Any member of a practice can read its roles and permissions; changing them
needs owner or admin.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from clinic_gateway.app.models.accounts import (
    PagePermission,
    Role,
    RoleRequest,
    TogglePermissionRequest,
    UserRolesResponse,
)
from clinic_gateway.app.security.auth import (
    MANAGER_ROLES,
    Identity,
    get_tenant_identity,
    require_any_role,
)
from clinic_gateway.app.services import role_service

router = APIRouter(tags=["roles"])


@router.get("/roles", response_model=List[Role])
async def list_roles(identity: Identity = Depends(get_tenant_identity)):
    """Base roles followed by the practice's custom roles."""
    return role_service.list_roles(identity.tenant_id)


@router.post("/roles", response_model=Role, status_code=status.HTTP_201_CREATED)
async def add_role(
    body: RoleRequest,
    identity: Identity = Depends(require_any_role(*MANAGER_ROLES)),
):
    return role_service.add_role(
        identity.tenant_id, body.role_name, body.role_description, identity.sub
    )


@router.put("/roles/{role_id}", response_model=Role)
async def update_role(
    role_id: str,
    body: RoleRequest,
    identity: Identity = Depends(require_any_role(*MANAGER_ROLES)),
):
    return role_service.update_role(identity.tenant_id, role_id, body.role_name)


@router.delete("/roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(
    role_id: str,
    identity: Identity = Depends(require_any_role(*MANAGER_ROLES)),
):
    role_service.delete_role(identity.tenant_id, role_id)


@router.get("/user-roles", response_model=UserRolesResponse)
async def user_roles(identity: Identity = Depends(get_tenant_identity)):
    """Custom role rows plus the selectable role-name lists."""
    custom = role_service.list_custom_roles(identity.tenant_id)
    return {
        "roles": custom,
        "available_roles": role_service.get_available_roles(custom),
        "dropdown_roles": role_service.get_user_dropdown_roles(custom),
    }


@router.get("/page-permissions", response_model=List[PagePermission])
async def list_page_permissions(identity: Identity = Depends(get_tenant_identity)):
    return role_service.list_page_permissions(identity.tenant_id)


@router.put("/page-permissions/{permission_id}/toggle")
async def toggle_page_permission(
    permission_id: str,
    body: TogglePermissionRequest,
    identity: Identity = Depends(require_any_role(*MANAGER_ROLES)),
):
    roles = role_service.update_page_permissions(
        identity.tenant_id, permission_id, body.role, body.current_roles, identity.sub
    )
    return {"id": permission_id, "roles": roles}
