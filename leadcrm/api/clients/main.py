# leadcrm/api/clients/main.py
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlmodel import Session

from ...core.audit import log_action
from ...core.users import require_admin, require_any_role
from ...db.engine_sync import get_sync_session
from ...models.user import User
from ...services.client_service import ClientService
from ..dependencies import ensure_client_access
from .models import AvailableUser, Client, ClientCreate, ClientUpdate

router = APIRouter()


# --- Dependency Injector ---
def get_client_service(session: Session = Depends(get_sync_session)) -> ClientService:
    return ClientService(session)


# --- Client Endpoints ---
@router.get("/clients", response_model=list[Client])
def api_get_all_clients(
    service: ClientService = Depends(get_client_service),
    current_user: User = Depends(require_admin),
):
    return service.get_all_clients()


@router.get("/clients/me", response_model=Client)
def api_get_my_client(
    service: ClientService = Depends(get_client_service),
    current_user: User = Depends(require_any_role),
):
    client = service.get_client_by_user_id(current_user.id)
    if client is None:
        raise HTTPException(status_code=404, detail="No client profile is linked to this account.")
    return client


@router.get("/clients/available-users", response_model=list[AvailableUser])
def api_get_available_users(
    service: ClientService = Depends(get_client_service),
    current_user: User = Depends(require_admin),
):
    return service.get_available_users()


@router.get("/clients/{client_id}", response_model=Client)
def api_get_client(
    client_id: uuid.UUID,
    service: ClientService = Depends(get_client_service),
    current_user: User = Depends(require_any_role),
):
    ensure_client_access(service.session, client_id, current_user)
    try:
        return service.get_client_by_id(client_id)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/clients", response_model=Client, status_code=status.HTTP_201_CREATED)
def api_create_client(
    client: ClientCreate,
    service: ClientService = Depends(get_client_service),
    current_user: User = Depends(require_admin),
):
    data = client.model_dump()
    try:
        return service.create_client(**data)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        if "already associated" in str(e):
            raise HTTPException(status_code=409, detail=str(e))
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/clients/{client_id}", response_model=Client)
def api_update_client(
    client_id: uuid.UUID,
    client_update: ClientUpdate,
    service: ClientService = Depends(get_client_service),
    current_user: User = Depends(require_admin),
):
    update_fields = client_update.model_dump(exclude_unset=True)
    try:
        return service.update_client(client_id, update_fields)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/clients/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_client(
    client_id: uuid.UUID,
    request: Request,
    service: ClientService = Depends(get_client_service),
    current_user: User = Depends(require_admin),
):
    """Deletes the client together with its user account and every row it owns."""
    try:
        service.delete_client(client_id)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        log_action("DELETE", "client", str(client_id), user=current_user, request=request, status="failure")
        raise HTTPException(status_code=400, detail=str(e))
    log_action("DELETE", "client", str(client_id), user=current_user, request=request)
