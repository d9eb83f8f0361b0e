"""
Telehealth endpoints: video access tokens and room lifecycle.

The participant identity is always the authenticated user; the session must
belong to the caller's practice.
"""

from fastapi import APIRouter, Depends

from clinic_gateway.app.models.settings import RoomRequest, VideoTokenRequest, VideoTokenResponse
from clinic_gateway.app.routes.route_utils import unwrap
from clinic_gateway.app.security.auth import Identity, require_page
from clinic_gateway.app.services import record_service, telehealth

router = APIRouter(prefix="/twilio", tags=["telehealth"])

telehealth_page = require_page("/practice/telehealth")


@router.post("/token", response_model=VideoTokenResponse)
async def create_token(body: VideoTokenRequest, identity: Identity = Depends(telehealth_page)):
    unwrap(record_service.get_session(identity.tenant_id, body.session_id))
    return telehealth.create_access_token(body.session_id, identity.sub, body.user_type)


@router.post("/rooms")
async def create_room(body: RoomRequest, identity: Identity = Depends(telehealth_page)):
    client = telehealth.get_rooms_client()
    return client.create_room(
        body.unique_name,
        room_type=body.type,
        record_participants_on_connect=body.record_participants_on_connect,
        max_participants=body.max_participants,
    )


@router.get("/rooms/{room_sid}")
async def get_room(room_sid: str, identity: Identity = Depends(telehealth_page)):
    return telehealth.get_rooms_client().get_room(room_sid)


@router.post("/rooms/{room_sid}/end")
async def end_room(room_sid: str, identity: Identity = Depends(telehealth_page)):
    return telehealth.get_rooms_client().end_room(room_sid)
