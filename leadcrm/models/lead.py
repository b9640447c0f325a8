# leadcrm/models/lead.py
"""
Lead and Note models.
"""
import uuid
from datetime import datetime

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

LEAD_STATUSES = ("New", "Contacted", "In Progress", "Won", "Lost")
WON_STATUS = "Won"

# Keys inside Lead.data with a meaning for the application
REVENUE_ATTRIBUTION_KEY = "_revenue_attribution_date"
HISTORICAL_FLAG_KEY = "_is_historical"


class Lead(SQLModel, table=True):
    __tablename__ = "leads"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    client_id: uuid.UUID = Field(foreign_key="clients.id", index=True, nullable=False)
    data: dict[str, str] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    service: str | None = Field(default=None)
    status: str = Field(default="New", index=True)
    value: float | None = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)


class Note(SQLModel, table=True):
    __tablename__ = "notes"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    lead_id: uuid.UUID = Field(foreign_key="leads.id", index=True, nullable=False)
    content: str = Field(nullable=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)
