# leadcrm/api/clients/models.py
import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

FieldKind = Literal["text", "email", "phone", "number", "textarea", "select", "date"]


# --- Service definitions (form schemas) ---
class ServiceField(BaseModel):
    id: str | None = None
    name: str
    label: str | None = None
    kind: FieldKind = "text"
    required: bool = False
    options: list[str] = Field(default_factory=list)


class ServiceDefinition(BaseModel):
    id: str | None = None
    name: str
    fields: list[ServiceField] = Field(default_factory=list)


# --- Nested rows returned with a client ---
class NoteRead(BaseModel):
    id: uuid.UUID
    lead_id: uuid.UUID
    content: str
    created_at: datetime


class AppointmentSummary(BaseModel):
    id: uuid.UUID
    title: str
    appointment_date: date
    appointment_time: str | None = None
    duration_minutes: int | None = None
    notes: str | None = None


class LeadRead(BaseModel):
    id: uuid.UUID
    client_id: uuid.UUID
    data: dict[str, str] = Field(default_factory=dict)
    service: str | None = None
    status: str
    value: float | None = None
    created_at: datetime
    notes: list[NoteRead] = Field(default_factory=list)
    appointments: list[AppointmentSummary] = Field(default_factory=list)


class AdSpendRead(BaseModel):
    id: uuid.UUID
    client_id: uuid.UUID
    amount: float
    date: date
    platform: str | None = None
    description: str | None = None
    model_config = ConfigDict(from_attributes=True)


# --- Client ---
class Client(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    services: list[ServiceDefinition] = Field(default_factory=list)
    mws_fixed_fee: float = 0.0
    mws_profit_percentage: float = 0.0
    quote_webhook_url: str | None = None
    created_at: datetime
    leads: list[LeadRead] = Field(default_factory=list)
    ad_spends: list[AdSpendRead] = Field(default_factory=list)


class ClientCreate(BaseModel):
    name: str
    user_id: uuid.UUID
    services: list[ServiceDefinition] = Field(default_factory=list)
    quote_webhook_url: str | None = None
    mws_fixed_fee: float = Field(default=0.0, ge=0)
    mws_profit_percentage: float = Field(default=0.0, ge=0, le=100)


class ClientUpdate(BaseModel):
    name: str | None = None
    services: list[ServiceDefinition] | None = None
    quote_webhook_url: str | None = None
    mws_fixed_fee: float | None = Field(default=None, ge=0)
    mws_profit_percentage: float | None = Field(default=None, ge=0, le=100)


class AvailableUser(BaseModel):
    id: uuid.UUID
    username: str
    email: str
    model_config = ConfigDict(from_attributes=True)
