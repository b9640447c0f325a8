# leadcrm/api/forms/main.py
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from ...core.users import require_admin
from ...db.engine_sync import get_sync_session
from ...models.user import User
from ...services.form_service import SavedFormService
from .models import SavedForm, SavedFormCreate, SavedFormUpdate

router = APIRouter()


def get_form_service(session: Session = Depends(get_sync_session)) -> SavedFormService:
    return SavedFormService(session)


@router.get("/forms", response_model=list[SavedForm])
def api_get_forms(
    service: SavedFormService = Depends(get_form_service),
    current_user: User = Depends(require_admin),
):
    return service.get_forms()


@router.post("/forms", response_model=SavedForm, status_code=status.HTTP_201_CREATED)
def api_save_form(
    form: SavedFormCreate,
    service: SavedFormService = Depends(get_form_service),
    current_user: User = Depends(require_admin),
):
    try:
        return service.save_form(form.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/forms/{form_id}", response_model=SavedForm)
def api_update_form(
    form_id: uuid.UUID,
    form_update: SavedFormUpdate,
    service: SavedFormService = Depends(get_form_service),
    current_user: User = Depends(require_admin),
):
    try:
        return service.update_form(form_id, form_update.model_dump(exclude_unset=True))
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/forms/{form_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_form(
    form_id: uuid.UUID,
    service: SavedFormService = Depends(get_form_service),
    current_user: User = Depends(require_admin),
):
    try:
        service.delete_form(form_id)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
