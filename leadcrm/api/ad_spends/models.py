# leadcrm/api/ad_spends/models.py
import uuid
import datetime as dt

from pydantic import BaseModel, Field


class AdSpendCreate(BaseModel):
    client_id: uuid.UUID
    amount: float = Field(ge=0)
    date: dt.date
    platform: str | None = None
    description: str | None = None


class AdSpendUpdate(BaseModel):
    amount: float | None = Field(default=None, ge=0)
    date: dt.date | None = None
    platform: str | None = None
    description: str | None = None


class AdSpendIds(BaseModel):
    ids: list[uuid.UUID]
