# leadcrm/api/quotes/models.py
import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

QuoteStatus = Literal["draft", "sent", "accepted", "rejected"]


class QuoteItemIn(BaseModel):
    description: str = Field(min_length=1)
    quantity: float = Field(default=1.0, ge=0)
    unit_price: float = Field(default=0.0, ge=0)


class QuoteItem(QuoteItemIn):
    id: uuid.UUID
    position: int
    total: float


class Quote(BaseModel):
    id: uuid.UUID
    lead_id: uuid.UUID
    client_id: uuid.UUID
    title: str
    status: str
    currency: str
    notes: str | None = None
    valid_until: date | None = None
    total_amount: float
    created_at: datetime
    items: list[QuoteItem] = Field(default_factory=list)


class QuoteWithDetails(Quote):
    lead_data: dict[str, str] = Field(default_factory=dict)
    client_name: str | None = None


class QuoteCreate(BaseModel):
    lead_id: uuid.UUID
    title: str = Field(min_length=1)
    currency: str = "EUR"
    notes: str | None = None
    valid_until: date | None = None
    # Position-keyed mappings ({"0": {...}, "1": {...}}) are accepted too
    items: list[QuoteItemIn] | dict[str, QuoteItemIn] = Field(default_factory=list)


class QuoteUpdate(BaseModel):
    title: str | None = None
    currency: str | None = None
    notes: str | None = None
    valid_until: date | None = None
    items: list[QuoteItemIn] | dict[str, QuoteItemIn] | None = None


class QuoteStatusUpdate(BaseModel):
    status: QuoteStatus
