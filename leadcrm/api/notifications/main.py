# leadcrm/api/notifications/main.py
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlmodel import Session

from ...core.audit import log_action
from ...core.users import require_admin, require_any_role
from ...db.engine_sync import get_sync_session
from ...models.user import User
from ...services.notification_service import NotificationService
from .models import Notification, NotificationEdit, NotificationSend, SentNotification

router = APIRouter()


def get_notification_service(session: Session = Depends(get_sync_session)) -> NotificationService:
    return NotificationService(session)


# --- Inbox ---
@router.get("/notifications", response_model=list[Notification])
def api_get_my_notifications(
    limit: int | None = Query(default=None, ge=1, le=500),
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(require_any_role),
):
    return service.get_notifications_for_user(current_user.id, limit=limit)


@router.post("/notifications/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
def api_mark_as_read(
    notification_id: uuid.UUID,
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(require_any_role),
):
    try:
        notification = service.get_notification(notification_id)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    if notification.user_id != current_user.id:
        raise HTTPException(status_code=404, detail=f"Notification {notification_id} not found.")
    service.mark_as_read(notification_id)


@router.post("/notifications/read-all")
def api_mark_all_as_read(
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(require_any_role),
):
    return {"updated": service.mark_all_as_read(current_user.id)}


# --- Sent batches (admin) ---
@router.post("/notifications/send", response_model=SentNotification, status_code=status.HTTP_201_CREATED)
def api_send_notification(
    payload: NotificationSend,
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(require_admin),
):
    try:
        return service.send_custom_notification(payload.user_ids, payload.title, payload.message)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/notifications/sent", response_model=list[SentNotification])
def api_get_sent_notifications(
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(require_admin),
):
    return service.get_sent_notifications()


@router.put("/notifications/sent/{notification_id}", response_model=SentNotification)
def api_update_sent_notification(
    notification_id: uuid.UUID,
    payload: NotificationEdit,
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(require_admin),
):
    try:
        batch = service.update_sent_notification(notification_id, payload.title, payload.message)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if batch is None:
        raise HTTPException(status_code=404, detail="No notifications found for the group to update.")
    return batch


@router.delete("/notifications/sent/{notification_id}")
def api_delete_sent_notification(
    notification_id: uuid.UUID,
    request: Request,
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(require_admin),
):
    try:
        deleted = service.delete_sent_notification(notification_id)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    log_action("DELETE", "notification_batch", str(notification_id), user=current_user, request=request,
               details={"rows": deleted})
    return {"deleted": deleted}
