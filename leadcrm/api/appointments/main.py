# leadcrm/api/appointments/main.py
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select

from ...core.users import require_admin, require_any_role
from ...db.engine_sync import get_sync_session
from ...models import Client
from ...models.user import User
from ...services.appointment_service import AppointmentService
from ..clients.models import LeadRead
from ..dependencies import ensure_lead_access
from .models import (
    Appointment,
    AppointmentCreate,
    AppointmentUpdate,
    CalendarAppointment,
    GeneralAppointmentCreate,
)

router = APIRouter()


def get_appointment_service(session: Session = Depends(get_sync_session)) -> AppointmentService:
    return AppointmentService(session)


@router.get("/appointments", response_model=list[CalendarAppointment])
def api_get_calendar(
    service: AppointmentService = Depends(get_appointment_service),
    current_user: User = Depends(require_any_role),
):
    """Admins see every appointment; a client user sees those of its own client."""
    if current_user.role == "admin":
        return service.get_appointments_for_calendar()
    client_id = service.session.exec(select(Client.id).where(Client.user_id == current_user.id)).first()
    if client_id is None:
        return []
    return service.get_appointments_for_calendar(client_id)


@router.post("/appointments", response_model=LeadRead, status_code=status.HTTP_201_CREATED)
def api_add_appointment(
    appointment: AppointmentCreate,
    service: AppointmentService = Depends(get_appointment_service),
    current_user: User = Depends(require_any_role),
):
    ensure_lead_access(service.session, appointment.lead_id, current_user)
    try:
        return service.add_appointment(appointment.model_dump())
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/appointments/general", response_model=Appointment, status_code=status.HTTP_201_CREATED)
def api_add_general_appointment(
    appointment: GeneralAppointmentCreate,
    service: AppointmentService = Depends(get_appointment_service),
    current_user: User = Depends(require_admin),
):
    try:
        return service.add_general_appointment(appointment.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/appointments/{appointment_id}", response_model=Appointment)
def api_update_appointment(
    appointment_id: uuid.UUID,
    appointment_update: AppointmentUpdate,
    service: AppointmentService = Depends(get_appointment_service),
    current_user: User = Depends(require_admin),
):
    try:
        return service.update_appointment(appointment_id, appointment_update.model_dump(exclude_unset=True))
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/appointments/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_appointment(
    appointment_id: uuid.UUID,
    service: AppointmentService = Depends(get_appointment_service),
    current_user: User = Depends(require_admin),
):
    try:
        service.delete_appointment(appointment_id)
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
