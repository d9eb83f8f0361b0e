"""
Session endpoints: sessions, session notes, homework and note templates.

Sessions follow the Calendar page permission; notes, homework and template
reads follow the Notes page. Template settings are changed from Settings.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from clinic_gateway.app.models.records import (
    HomeworkCreate,
    HomeworkUpdate,
    SessionCreate,
    SessionNoteCreate,
    SessionNoteUpdate,
    SessionUpdate,
)
from clinic_gateway.app.models.settings import NoteTemplatesRequest
from clinic_gateway.app.routes.route_utils import unwrap
from clinic_gateway.app.security.auth import Identity, require_page
from clinic_gateway.app.services import note_templates, record_service

router = APIRouter(tags=["sessions"])

calendar_page = require_page("/practice/calendar")
notes_page = require_page("/practice/notes")
settings_page = require_page("/practice/settings")


@router.get("/sessions")
async def list_sessions(
    client_id: Optional[str] = Query(default=None),
    identity: Identity = Depends(calendar_page),
):
    return unwrap(record_service.list_sessions(identity.tenant_id, client_id))


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(body: SessionCreate, identity: Identity = Depends(calendar_page)):
    return unwrap(
        record_service.create_session(
            identity.tenant_id, body.model_dump(exclude_none=True), identity.sub
        )
    )


@router.put("/sessions/{session_id}")
async def update_session(
    session_id: str, body: SessionUpdate, identity: Identity = Depends(calendar_page)
):
    return unwrap(
        record_service.update_session(
            identity.tenant_id, session_id, body.model_dump(exclude_unset=True), identity.sub
        )
    )


@router.get("/session-notes")
async def list_session_notes(
    client_id: str = Query(...),
    identity: Identity = Depends(notes_page),
):
    return unwrap(record_service.list_session_notes(identity.tenant_id, client_id))


@router.post("/session-notes", status_code=status.HTTP_201_CREATED)
async def create_session_note(body: SessionNoteCreate, identity: Identity = Depends(notes_page)):
    return unwrap(
        record_service.create_session_note(identity.tenant_id, body.model_dump(), identity.sub)
    )


@router.put("/session-notes/{note_id}")
async def update_session_note(
    note_id: str, body: SessionNoteUpdate, identity: Identity = Depends(notes_page)
):
    return unwrap(
        record_service.update_session_note(
            identity.tenant_id, note_id, body.model_dump(exclude_unset=True), identity.sub
        )
    )


@router.get("/homework")
async def list_homework(
    client_id: str = Query(...),
    identity: Identity = Depends(notes_page),
):
    return unwrap(record_service.list_homework(identity.tenant_id, client_id))


@router.post("/homework", status_code=status.HTTP_201_CREATED)
async def create_homework(body: HomeworkCreate, identity: Identity = Depends(notes_page)):
    return unwrap(
        record_service.create_homework(identity.tenant_id, body.model_dump(), identity.sub)
    )


@router.put("/homework/{homework_id}")
async def update_homework(
    homework_id: str, body: HomeworkUpdate, identity: Identity = Depends(notes_page)
):
    return unwrap(
        record_service.update_homework(
            identity.tenant_id, homework_id, body.model_dump(exclude_unset=True), identity.sub
        )
    )


@router.get("/note-templates")
async def get_note_templates(
    enabled_only: bool = Query(default=False),
    identity: Identity = Depends(notes_page),
):
    if enabled_only:
        return unwrap(note_templates.get_enabled_templates(identity.tenant_id))
    return unwrap(note_templates.get_templates(identity.tenant_id))


@router.put("/note-templates")
async def update_note_templates(
    body: NoteTemplatesRequest, identity: Identity = Depends(settings_page)
):
    templates = [template.model_dump() for template in body.templates]
    return unwrap(note_templates.update_templates(identity.tenant_id, templates, identity.sub))
