# leadcrm/models/ad_spend.py
import datetime as dt
import uuid

from sqlmodel import Field, SQLModel


class AdSpend(SQLModel, table=True):
    """Advertising spend of a client, netted against won-lead revenue."""

    __tablename__ = "ad_spends"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    client_id: uuid.UUID = Field(foreign_key="clients.id", index=True, nullable=False)
    amount: float = Field(nullable=False)
    date: dt.date = Field(nullable=False, index=True)
    platform: str | None = Field(default=None)
    description: str | None = Field(default=None)
    created_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)
