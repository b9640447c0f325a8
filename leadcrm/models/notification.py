# leadcrm/models/notification.py
"""
Notification model.

Notifications sent together share one batch_id and one created_at. Rows
written before batch ids existed have batch_id NULL and are grouped by
(title, message, minute of created_at) instead.
"""
import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", index=True, nullable=False)
    client_id: uuid.UUID | None = Field(default=None, index=True)
    lead_id: uuid.UUID | None = Field(default=None, index=True)
    title: str | None = Field(default=None)
    message: str = Field(nullable=False)
    read: bool = Field(default=False)
    batch_id: uuid.UUID | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
