"""
Branding and configuration endpoints.
"""

from fastapi import APIRouter, Depends

from clinic_gateway.app.models.settings import BrandingRequest, ConfigurationRequest
from clinic_gateway.app.routes.route_utils import unwrap
from clinic_gateway.app.security.auth import Identity, get_tenant_identity, require_page
from clinic_gateway.app.services import settings_service

router = APIRouter(tags=["settings"])

settings_page = require_page("/practice/settings")


@router.get("/branding")
async def get_branding(identity: Identity = Depends(get_tenant_identity)):
    """Branding is readable by every member of the practice."""
    return unwrap(settings_service.get_branding(identity.tenant_id))


@router.put("/branding")
async def update_branding(body: BrandingRequest, identity: Identity = Depends(settings_page)):
    return unwrap(
        settings_service.upsert_branding(
            identity.tenant_id,
            identity.sub,
            body.practice_name,
            logo_url=body.logo_url,
            primary_color=body.primary_color,
            secondary_color=body.secondary_color,
        )
    )


@router.get("/configurations")
async def list_configurations(identity: Identity = Depends(settings_page)):
    return unwrap(settings_service.list_configurations(identity.tenant_id))


@router.put("/configurations/{key}")
async def update_configuration(
    key: str, body: ConfigurationRequest, identity: Identity = Depends(settings_page)
):
    return unwrap(
        settings_service.update_configuration(
            identity.tenant_id, key, body.value, identity.sub, config_type=body.type
        )
    )
