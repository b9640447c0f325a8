# leadcrm/api/forms/models.py
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ..clients.models import ServiceField


class SavedForm(BaseModel):
    id: uuid.UUID
    name: str
    fields: list[ServiceField] = Field(default_factory=list)
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class SavedFormCreate(BaseModel):
    name: str = Field(min_length=1)
    fields: list[ServiceField] = Field(default_factory=list)


class SavedFormUpdate(BaseModel):
    name: str | None = None
    fields: list[ServiceField] | None = None
