"""
Telehealth brokering: video access tokens and room management.

Access tokens follow the Twilio access-token JWT layout (HS256 signed with
the API secret, ``cty: twilio-fpa;v=1``, identity and video grant under
``grants``). Rooms are managed over the provider's REST API with HTTP basic
auth. Media transport is entirely client-side.
"""

import logging
import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests
from jose import jwt

from clinic_gateway.app.errors import NotFoundError, ProviderError, UnknownError, ValidationError

logger = logging.getLogger(__name__)

TOKEN_TTL_SECONDS = 3600
DEFAULT_VIDEO_BASE_URL = "https://video.twilio.com/v1"
REQUEST_TIMEOUT = 10


def room_name_for_session(session_id: str) -> str:
    return f"session-{session_id}"


def create_access_token(session_id: str, user_id: str, user_type: str) -> Dict[str, Any]:
    """
    Mint a video access token for one participant of a session room.

    Raises:
        ValidationError: a parameter is missing
        UnknownError: provider credentials are not configured
    """
    if not session_id or not user_id or not user_type:
        raise ValidationError("Missing required parameters")

    account_sid = os.getenv("TWILIO_ACCOUNT_SID")
    api_key = os.getenv("TWILIO_API_KEY")
    api_secret = os.getenv("TWILIO_API_SECRET")
    if not account_sid or not api_key or not api_secret:
        raise UnknownError("Twilio credentials not configured")

    identity = f"{user_type}-{user_id}"
    room = room_name_for_session(session_id)
    now = int(time.time())
    expires = now + TOKEN_TTL_SECONDS

    claims = {
        "jti": f"{api_key}-{now}",
        "iss": api_key,
        "sub": account_sid,
        "nbf": now,
        "exp": expires,
        "grants": {"identity": identity, "video": {"room": room}},
    }
    token = jwt.encode(
        claims,
        api_secret,
        algorithm="HS256",
        headers={"cty": "twilio-fpa;v=1"},
    )

    logger.info("Issued video token for identity %s, room %s", identity, room)
    return {
        "token": token,
        "identity": identity,
        "room": room,
        "expires_at": datetime.fromtimestamp(expires, tz=timezone.utc)
        .isoformat()
        .replace("+00:00", "Z"),
    }


class RoomsClient:
    """Minimal client for the provider's Rooms resource."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        base_url: str = DEFAULT_VIDEO_BASE_URL,
        session: Optional[requests.Session] = None,
    ):
        self.auth = (account_sid, auth_token)
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()

    @classmethod
    def from_env(cls, session: Optional[requests.Session] = None) -> "RoomsClient":
        account_sid = os.getenv("TWILIO_ACCOUNT_SID")
        auth_token = os.getenv("TWILIO_AUTH_TOKEN")
        if not account_sid or not auth_token:
            raise UnknownError("Twilio credentials not configured")
        return cls(
            account_sid,
            auth_token,
            base_url=os.getenv("TWILIO_VIDEO_BASE_URL", DEFAULT_VIDEO_BASE_URL),
            session=session,
        )

    def _request(self, method: str, path: str, data: Optional[Dict[str, str]] = None) -> requests.Response:
        try:
            return self.session.request(
                method,
                f"{self.base_url}{path}",
                data=data,
                auth=self.auth,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.error("Video provider request failed: %s", e)
            raise ProviderError("Video provider unavailable")

    def create_room(
        self,
        unique_name: str,
        room_type: str = "group",
        record_participants_on_connect: bool = True,
        max_participants: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Create a room, or return the existing one with the same name."""
        if not unique_name:
            raise ValidationError("unique_name is required")

        form = {
            "UniqueName": unique_name,
            "Type": room_type or "group",
            "RecordParticipantsOnConnect": "true" if record_participants_on_connect else "false",
        }
        if max_participants:
            form["MaxParticipants"] = str(max_participants)

        response = self._request("POST", "/Rooms", data=form)
        if response.ok:
            room = response.json()
            logger.info("Room created: %s", room.get("unique_name"))
            return room

        logger.error("Video provider error %s creating room", response.status_code)
        if response.status_code == 400 and "already exists" in response.text:
            existing = self._request("GET", f"/Rooms/{unique_name}")
            if existing.ok:
                return existing.json()
        raise ProviderError("Failed to create room")

    def get_room(self, room_sid: str) -> Dict[str, Any]:
        response = self._request("GET", f"/Rooms/{room_sid}")
        if response.status_code == 404:
            raise NotFoundError("Room not found")
        if not response.ok:
            raise ProviderError("Failed to fetch room")
        return response.json()

    def end_room(self, room_sid: str) -> Dict[str, Any]:
        response = self._request("POST", f"/Rooms/{room_sid}", data={"Status": "completed"})
        if response.status_code == 404:
            raise NotFoundError("Room not found")
        if not response.ok:
            raise ProviderError("Failed to end room")
        logger.info("Room ended: %s", room_sid)
        return response.json()


def get_rooms_client() -> RoomsClient:
    return RoomsClient.from_env()
