# leadcrm/models/appointment.py
import uuid
from datetime import date, datetime

from sqlmodel import Field, SQLModel


class Appointment(SQLModel, table=True):
    """
    Appointment shown on the calendar. lead_id and client_id are empty for
    general appointments that are not tied to a lead.
    """

    __tablename__ = "appointments"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    lead_id: uuid.UUID | None = Field(default=None, foreign_key="leads.id", index=True)
    client_id: uuid.UUID | None = Field(default=None, foreign_key="clients.id", index=True)
    title: str = Field(nullable=False)
    appointment_date: date = Field(nullable=False, index=True)
    appointment_time: str | None = Field(default=None)  # "HH:MM"
    duration_minutes: int | None = Field(default=None)
    notes: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
