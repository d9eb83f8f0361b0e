"""
Tenant registry endpoints.

Listing is open to any authenticated user (scoped to their own tenant);
creating tenants and changing their status needs the platform_admin role.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from clinic_gateway.app.models.accounts import Tenant, TenantRequest, TenantStatusRequest
from clinic_gateway.app.security.auth import (
    Identity,
    get_current_identity,
    require_platform_admin,
)
from clinic_gateway.app.services import tenant_service

router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.get("", response_model=List[Tenant])
async def list_tenants(identity: Identity = Depends(get_current_identity)):
    return tenant_service.list_tenants(identity)


@router.post("", response_model=Tenant, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    body: TenantRequest,
    identity: Identity = Depends(require_platform_admin),
):
    return tenant_service.create_tenant(body.practice_name, status=body.status)


@router.put("/{tenant_id}/status", response_model=Tenant)
async def update_tenant_status(
    tenant_id: str,
    body: TenantStatusRequest,
    identity: Identity = Depends(require_platform_admin),
):
    return tenant_service.update_tenant_status(tenant_id, body.status)
