# leadcrm/api/notifications/models.py
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Notification(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    client_id: uuid.UUID | None = None
    lead_id: uuid.UUID | None = None
    title: str | None = None
    message: str
    read: bool
    batch_id: uuid.UUID | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class SentNotification(Notification):
    """One row standing for a whole batch, with every recipient of it."""

    recipient_ids: list[uuid.UUID] = Field(default_factory=list)
    recipient_count: int = 0


class NotificationSend(BaseModel):
    user_ids: list[uuid.UUID]
    title: str
    message: str


class NotificationEdit(BaseModel):
    title: str
    message: str
