# leadcrm/models/quote.py
"""
Quote and QuoteItem models. Items are ordered by `position`.
"""
import uuid
from datetime import date, datetime

from sqlmodel import Field, SQLModel

QUOTE_STATUSES = ("draft", "sent", "accepted", "rejected")


class Quote(SQLModel, table=True):
    __tablename__ = "quotes"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    lead_id: uuid.UUID = Field(foreign_key="leads.id", index=True, nullable=False)
    client_id: uuid.UUID = Field(foreign_key="clients.id", index=True, nullable=False)
    title: str = Field(nullable=False)
    status: str = Field(default="draft", index=True)
    currency: str = Field(default="EUR")
    notes: str | None = Field(default=None)
    valid_until: date | None = Field(default=None)
    total_amount: float = Field(default=0.0)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class QuoteItem(SQLModel, table=True):
    __tablename__ = "quote_items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    quote_id: uuid.UUID = Field(foreign_key="quotes.id", index=True, nullable=False)
    position: int = Field(default=0)
    description: str = Field(nullable=False)
    quantity: float = Field(default=1.0)
    unit_price: float = Field(default=0.0)

    @property
    def total(self) -> float:
        return self.quantity * self.unit_price
