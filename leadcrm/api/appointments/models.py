# leadcrm/api/appointments/models.py
import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class Appointment(BaseModel):
    id: uuid.UUID
    lead_id: uuid.UUID | None = None
    client_id: uuid.UUID | None = None
    title: str
    appointment_date: date
    appointment_time: str | None = None
    duration_minutes: int | None = None
    notes: str | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class CalendarLead(BaseModel):
    id: uuid.UUID
    client_id: uuid.UUID
    data: dict[str, str] = Field(default_factory=dict)
    service: str | None = None
    status: str
    value: float | None = None
    created_at: datetime
    notes: list[dict] = Field(default_factory=list)
    quotes: list[dict] = Field(default_factory=list)


class CalendarClient(BaseModel):
    name: str
    user_id: uuid.UUID


class CalendarAppointment(Appointment):
    lead: CalendarLead | None = None
    client: CalendarClient | None = None


class AppointmentBase(BaseModel):
    title: str = Field(min_length=1)
    appointment_date: date
    appointment_time: str | None = Field(default=None, pattern=r"^\d{2}:\d{2}(:\d{2})?$")
    duration_minutes: int | None = Field(default=None, ge=0)
    notes: str | None = None


class AppointmentCreate(AppointmentBase):
    lead_id: uuid.UUID


class GeneralAppointmentCreate(AppointmentBase):
    pass


class AppointmentUpdate(BaseModel):
    title: str | None = None
    appointment_date: date | None = None
    appointment_time: str | None = Field(default=None, pattern=r"^\d{2}:\d{2}(:\d{2})?$")
    duration_minutes: int | None = Field(default=None, ge=0)
    notes: str | None = None
