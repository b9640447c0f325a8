# leadcrm/api/users/main.py
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlmodel import Session

from ...core.audit import log_action
from ...core.users import current_active_user, require_admin, require_any_role
from ...db.engine_sync import get_sync_session
from ...models.user import User
from ...schemas.user import ProfileUpdate, StatusUpdate, UserRead
from ...services.user_service import UserService

router = APIRouter()


def get_user_service(session: Session = Depends(get_sync_session)) -> UserService:
    return UserService(session)


def _ensure_self_or_admin(user_id: uuid.UUID, current_user: User) -> None:
    if current_user.role != "admin" and current_user.id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only access your own profile.")


@router.get("/users", response_model=List[UserRead])
def api_get_all_users(
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(require_admin),
):
    return service.get_all_users()


@router.get("/users/{user_id}", response_model=UserRead)
def api_get_user(
    user_id: uuid.UUID,
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(current_active_user),
):
    """
    Profile lookup used right after sign-in. Suspended users can still read
    their own profile so the client learns why it is being signed out.
    """
    _ensure_self_or_admin(user_id, current_user)
    user = service.get_user_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found.")
    return user


@router.put("/users/{user_id}", response_model=UserRead)
def api_update_user(
    user_id: uuid.UUID,
    user_data: ProfileUpdate,
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(require_any_role),
):
    _ensure_self_or_admin(user_id, current_user)
    updates = user_data.model_dump(exclude_unset=True)
    if current_user.role != "admin":
        updates.pop("role", None)
    try:
        return service.update_user(user_id, updates)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        if "already exists" in str(e):
            raise HTTPException(status_code=409, detail=str(e))
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/users/{user_id}/status", response_model=UserRead)
def api_update_user_status(
    user_id: uuid.UUID,
    payload: StatusUpdate,
    request: Request,
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(require_admin),
):
    if user_id == current_user.id:
        raise HTTPException(status_code=403, detail="You cannot change the status of your own account.")
    try:
        user = service.update_user_status(user_id, payload.status)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    log_action("UPDATE", "user_status", str(user_id), user=current_user, request=request,
               details={"status": payload.status})
    return user


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_user(
    user_id: uuid.UUID,
    request: Request,
    service: UserService = Depends(get_user_service),
    current_user: User = Depends(require_admin),
):
    """Deletes the account, its client and every row the client owns."""
    if user_id == current_user.id:
        raise HTTPException(status_code=403, detail="You cannot delete your own account.")
    try:
        service.delete_user_and_data(user_id)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    log_action("DELETE", "user", str(user_id), user=current_user, request=request)
