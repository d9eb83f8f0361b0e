"""
Client record endpoints: clients, client goals and client journal.

Access follows the practice's permission for the Clients page.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from clinic_gateway.app.models.records import (
    ClientCreate,
    ClientGoals,
    ClientUpdate,
    JournalEntryCreate,
    JournalEntryUpdate,
)
from clinic_gateway.app.routes.route_utils import unwrap
from clinic_gateway.app.security.auth import Identity, require_page
from clinic_gateway.app.services import record_service

router = APIRouter(tags=["clients"])

clients_page = require_page("/practice/clients")


@router.get("/clients")
async def list_clients(identity: Identity = Depends(clients_page)):
    return unwrap(record_service.list_clients(identity.tenant_id))


@router.post("/clients", status_code=status.HTTP_201_CREATED)
async def create_client(body: ClientCreate, identity: Identity = Depends(clients_page)):
    return unwrap(
        record_service.create_client(identity.tenant_id, body.model_dump(), identity.sub)
    )


@router.get("/clients/{client_id}")
async def get_client(client_id: str, identity: Identity = Depends(clients_page)):
    return unwrap(record_service.get_client(identity.tenant_id, client_id))


@router.put("/clients/{client_id}")
async def update_client(
    client_id: str, body: ClientUpdate, identity: Identity = Depends(clients_page)
):
    return unwrap(
        record_service.update_client(
            identity.tenant_id, client_id, body.model_dump(exclude_unset=True), identity.sub
        )
    )


@router.delete("/clients/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(client_id: str, identity: Identity = Depends(clients_page)):
    unwrap(record_service.delete_client(identity.tenant_id, client_id))


@router.get("/clients/{client_id}/goals")
async def get_client_goals(client_id: str, identity: Identity = Depends(clients_page)):
    return unwrap(record_service.get_client_goals(identity.tenant_id, client_id))


@router.put("/clients/{client_id}/goals")
async def save_client_goals(
    client_id: str, body: ClientGoals, identity: Identity = Depends(clients_page)
):
    return unwrap(
        record_service.upsert_client_goals(
            identity.tenant_id, client_id, body.model_dump(), identity.sub
        )
    )


@router.get("/client-journal")
async def list_journal_entries(
    client_id: Optional[str] = Query(default=None),
    identity: Identity = Depends(clients_page),
):
    return unwrap(record_service.list_journal_entries(identity.tenant_id, client_id))


@router.post("/client-journal", status_code=status.HTTP_201_CREATED)
async def create_journal_entry(
    body: JournalEntryCreate, identity: Identity = Depends(clients_page)
):
    return unwrap(
        record_service.create_journal_entry(identity.tenant_id, body.model_dump(), identity.sub)
    )


@router.put("/client-journal/{entry_id}")
async def update_journal_entry(
    entry_id: str, body: JournalEntryUpdate, identity: Identity = Depends(clients_page)
):
    return unwrap(
        record_service.update_journal_entry(
            identity.tenant_id, entry_id, body.model_dump(exclude_unset=True), identity.sub
        )
    )


@router.delete("/client-journal/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_journal_entry(entry_id: str, identity: Identity = Depends(clients_page)):
    unwrap(record_service.delete_journal_entry(identity.tenant_id, entry_id))
