# leadcrm/models/client.py
"""
Client model: the business account a client user logs into.
"""
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class Client(SQLModel, table=True):
    """
    Fields:
    - user_id: the login owning this client (at most one client per user)
    - services: list of service definitions (form schemas) stored as JSON
    - mws_fixed_fee / mws_profit_percentage: commission parameters
    - quote_webhook_url: where quotes are delivered when sent
    """

    __tablename__ = "clients"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", unique=True, index=True, nullable=False)
    name: str = Field(nullable=False)
    services: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    mws_fixed_fee: float = Field(default=0.0)
    mws_profit_percentage: float = Field(default=0.0)
    quote_webhook_url: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
