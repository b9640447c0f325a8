# leadcrm/api/leads/models.py
import uuid
import datetime as dt
from typing import Literal

from pydantic import BaseModel, Field

LeadStatus = Literal["New", "Contacted", "In Progress", "Won", "Lost"]


class LeadCreate(BaseModel):
    client_id: uuid.UUID
    data: dict[str, str] = Field(default_factory=dict)
    service: str | None = None
    status: LeadStatus = "New"
    value: float | None = None
    created_at: dt.datetime | None = None


class LeadUpdate(BaseModel):
    data: dict[str, str] | None = None
    service: str | None = None
    status: LeadStatus | None = None
    value: float | None = None
    created_at: dt.datetime | None = None


class HistoricalLeadCreate(BaseModel):
    client_id: uuid.UUID
    original_data: dict[str, str] = Field(default_factory=dict)
    service: str
    value: float = Field(ge=0)
    date: dt.date
    notes: str | None = None


class HistoricalLeadUpdate(BaseModel):
    service: str
    value: float = Field(ge=0)
    date: dt.date
    notes: str | None = None
    existing_note_id: uuid.UUID | None = None


class LeadIds(BaseModel):
    ids: list[uuid.UUID]


class NoteCreate(BaseModel):
    content: str = Field(min_length=1)
