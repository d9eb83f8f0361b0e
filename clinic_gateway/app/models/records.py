"""
Client record models: clients, sessions, notes, homework, goals, journal.

Update models leave every field optional; routes forward only the fields the
caller actually sent (``model_dump(exclude_unset=True)``).
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class ClientCreate(BaseModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[str] = None
    emergency_contact: Optional[str] = None
    risk_score: Optional[int] = Field(default=None, ge=0, le=10)


class ClientUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[str] = None
    emergency_contact: Optional[str] = None
    risk_score: Optional[int] = Field(default=None, ge=0, le=10)


class SessionCreate(BaseModel):
    client_id: str
    session_date: str = Field(..., description="ISO 8601 date-time")
    session_type: str
    therapist_id: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    status: Optional[str] = None
    notes: Optional[str] = None


class SessionUpdate(BaseModel):
    therapist_id: Optional[str] = None
    session_date: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    session_type: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None


class SessionNoteCreate(BaseModel):
    session_id: str
    client_id: str
    template_type: str = "free"
    content: Dict[str, Optional[str]] = Field(default_factory=dict, description="Keyed by the template's field keys")
    practitioner_risk_rating: Optional[int] = Field(default=None, ge=0, le=10)
    is_shared_with_client: bool = False


class SessionNoteUpdate(BaseModel):
    template_type: Optional[str] = None
    content: Optional[Dict[str, Optional[str]]] = None
    practitioner_risk_rating: Optional[int] = Field(default=None, ge=0, le=10)
    is_shared_with_client: Optional[bool] = None


class HomeworkCreate(BaseModel):
    client_id: str
    title: str
    description: Optional[str] = None
    session_id: Optional[str] = None
    note_id: Optional[str] = None
    assigned_date: Optional[str] = None
    due_date: Optional[str] = None


class HomeworkUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[str] = None
    status: Optional[str] = None
    completion_notes: Optional[str] = None


class ClientGoals(BaseModel):
    emotional_mental: str = ""
    physical: str = ""
    social_relational: str = ""
    spiritual: str = ""
    environmental: str = ""
    intellectual_occupational: str = ""
    financial: str = ""


class JournalEntryCreate(BaseModel):
    client_id: str
    title: str
    content: str
    session_date: Optional[str] = None
    is_shared_with_practitioner: bool = False


class JournalEntryUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    session_date: Optional[str] = None
    is_shared_with_practitioner: Optional[bool] = None
