"""
Settings and telehealth models.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field


class BrandingRequest(BaseModel):
    practice_name: str
    logo_url: Optional[str] = None
    primary_color: Optional[str] = Field(default=None, description="Hex color, default #0f766e")
    secondary_color: Optional[str] = Field(default=None, description="Hex color, default #14b8a6")


class ConfigurationRequest(BaseModel):
    value: Any
    type: str = "dynamic"


class TemplateField(BaseModel):
    key: str
    label: Optional[str] = None
    description: Optional[str] = None


class NoteTemplate(BaseModel):
    id: str
    label: Optional[str] = None
    fields: List[TemplateField] = Field(default_factory=list)
    is_enabled: bool = True
    is_custom: bool = False


class NoteTemplatesRequest(BaseModel):
    templates: List[NoteTemplate]


class VideoTokenRequest(BaseModel):
    session_id: str
    user_type: str = Field(..., description="e.g. practitioner or client")


class VideoTokenResponse(BaseModel):
    token: str
    identity: str
    room: str
    expires_at: str


class RoomRequest(BaseModel):
    unique_name: str
    type: str = "group"
    record_participants_on_connect: bool = True
    max_participants: Optional[int] = Field(default=None, gt=0)
