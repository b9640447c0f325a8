# leadcrm/api/ad_spends/main.py
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlmodel import Session

from ...core.audit import log_action
from ...core.users import require_admin, require_any_role
from ...db.engine_sync import get_sync_session
from ...models.user import User
from ...services.ad_spend_service import AdSpendService
from ..dependencies import ensure_client_access
from ..clients.models import AdSpendRead
from .models import AdSpendCreate, AdSpendIds, AdSpendUpdate

router = APIRouter()


def get_ad_spend_service(session: Session = Depends(get_sync_session)) -> AdSpendService:
    return AdSpendService(session)


@router.get("/clients/{client_id}/ad-spends", response_model=list[AdSpendRead])
def api_get_ad_spends(
    client_id: uuid.UUID,
    service: AdSpendService = Depends(get_ad_spend_service),
    current_user: User = Depends(require_any_role),
):
    ensure_client_access(service.session, client_id, current_user)
    return service.get_ad_spends_for_client(client_id)


@router.post("/ad-spends", response_model=AdSpendRead, status_code=status.HTTP_201_CREATED)
def api_create_ad_spend(
    spend: AdSpendCreate,
    service: AdSpendService = Depends(get_ad_spend_service),
    current_user: User = Depends(require_admin),
):
    data = spend.model_dump()
    client_id = data.pop("client_id")
    try:
        return service.add_ad_spend(client_id, data)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/ad-spends/{spend_id}", response_model=AdSpendRead)
def api_update_ad_spend(
    spend_id: uuid.UUID,
    spend_update: AdSpendUpdate,
    service: AdSpendService = Depends(get_ad_spend_service),
    current_user: User = Depends(require_admin),
):
    try:
        return service.update_ad_spend(spend_id, spend_update.model_dump(exclude_unset=True))
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/ad-spends/{spend_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_ad_spend(
    spend_id: uuid.UUID,
    request: Request,
    service: AdSpendService = Depends(get_ad_spend_service),
    current_user: User = Depends(require_admin),
):
    try:
        service.delete_ad_spend(spend_id)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    log_action("DELETE", "ad_spend", str(spend_id), user=current_user, request=request)


@router.post("/ad-spends/bulk-delete")
def api_delete_ad_spends(
    payload: AdSpendIds,
    request: Request,
    service: AdSpendService = Depends(get_ad_spend_service),
    current_user: User = Depends(require_admin),
):
    try:
        deleted = service.delete_ad_spends(payload.ids)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    log_action("DELETE", "ad_spend", ",".join(str(i) for i in payload.ids), user=current_user, request=request)
    return {"deleted": deleted}
