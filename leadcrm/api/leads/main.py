# leadcrm/api/leads/main.py
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlmodel import Session

from ...core.audit import log_action
from ...core.users import require_admin, require_any_role
from ...db.engine_sync import get_sync_session
from ...models import Note
from ...models.user import User
from ...services.lead_service import LeadService
from ..clients.models import LeadRead, NoteRead
from ..dependencies import ensure_client_access, ensure_lead_access
from .models import (
    HistoricalLeadCreate,
    HistoricalLeadUpdate,
    LeadCreate,
    LeadIds,
    LeadUpdate,
    NoteCreate,
)

router = APIRouter()


# --- Dependency Injector ---
def get_lead_service(session: Session = Depends(get_sync_session)) -> LeadService:
    return LeadService(session)


# --- Lead Endpoints ---
@router.get("/clients/{client_id}/leads", response_model=list[LeadRead])
def api_get_leads_for_client(
    client_id: uuid.UUID,
    service: LeadService = Depends(get_lead_service),
    current_user: User = Depends(require_any_role),
):
    ensure_client_access(service.session, client_id, current_user)
    return service.get_leads_for_client(client_id)


@router.get("/leads/{lead_id}", response_model=LeadRead)
def api_get_lead(
    lead_id: uuid.UUID,
    service: LeadService = Depends(get_lead_service),
    current_user: User = Depends(require_any_role),
):
    ensure_lead_access(service.session, lead_id, current_user)
    return service.get_lead(lead_id)


@router.post("/leads", response_model=LeadRead, status_code=status.HTTP_201_CREATED)
def api_create_lead(
    lead: LeadCreate,
    service: LeadService = Depends(get_lead_service),
    current_user: User = Depends(require_any_role),
):
    ensure_client_access(service.session, lead.client_id, current_user)
    try:
        return service.add_lead(**lead.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/leads/historical", response_model=LeadRead, status_code=status.HTTP_201_CREATED)
def api_create_historical_lead(
    lead: HistoricalLeadCreate,
    service: LeadService = Depends(get_lead_service),
    current_user: User = Depends(require_admin),
):
    try:
        return service.add_historical_lead(**lead.model_dump())
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/leads/{lead_id}/historical", response_model=LeadRead)
def api_update_historical_lead(
    lead_id: uuid.UUID,
    lead: HistoricalLeadUpdate,
    service: LeadService = Depends(get_lead_service),
    current_user: User = Depends(require_admin),
):
    try:
        return service.update_historical_lead(lead_id, **lead.model_dump())
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/leads/{lead_id}", response_model=LeadRead)
def api_update_lead(
    lead_id: uuid.UUID,
    lead_update: LeadUpdate,
    service: LeadService = Depends(get_lead_service),
    current_user: User = Depends(require_any_role),
):
    ensure_lead_access(service.session, lead_id, current_user)
    try:
        return service.update_lead(lead_id, lead_update.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/leads/{lead_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_lead(
    lead_id: uuid.UUID,
    request: Request,
    service: LeadService = Depends(get_lead_service),
    current_user: User = Depends(require_admin),
):
    try:
        service.delete_lead(lead_id)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    log_action("DELETE", "lead", str(lead_id), user=current_user, request=request)


@router.post("/leads/bulk-delete", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_leads(
    payload: LeadIds,
    request: Request,
    service: LeadService = Depends(get_lead_service),
    current_user: User = Depends(require_admin),
):
    try:
        service.delete_leads(payload.ids)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    log_action(
        "DELETE", "lead", ",".join(str(i) for i in payload.ids), user=current_user, request=request,
        details={"count": len(payload.ids)},
    )


# --- Note Endpoints ---
@router.post("/leads/{lead_id}/notes", response_model=LeadRead, status_code=status.HTTP_201_CREATED)
def api_add_note(
    lead_id: uuid.UUID,
    note: NoteCreate,
    service: LeadService = Depends(get_lead_service),
    current_user: User = Depends(require_any_role),
):
    ensure_lead_access(service.session, lead_id, current_user)
    try:
        return service.add_note(lead_id, note.content)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _ensure_note_access(service: LeadService, note_id: uuid.UUID, user: User) -> None:
    note = service.session.get(Note, note_id)
    if not note:
        raise HTTPException(status_code=404, detail=f"Note {note_id} not found.")
    ensure_lead_access(service.session, note.lead_id, user)


@router.put("/notes/{note_id}", response_model=NoteRead)
def api_update_note(
    note_id: uuid.UUID,
    note: NoteCreate,
    service: LeadService = Depends(get_lead_service),
    current_user: User = Depends(require_any_role),
):
    _ensure_note_access(service, note_id, current_user)
    return service.update_note(note_id, note.content)


@router.delete("/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_note(
    note_id: uuid.UUID,
    service: LeadService = Depends(get_lead_service),
    current_user: User = Depends(require_any_role),
):
    _ensure_note_access(service, note_id, current_user)
    service.delete_note(note_id)
