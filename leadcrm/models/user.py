# leadcrm/models/user.py
"""
User model for FastAPI Users with SQLModel.
Combines FastAPI Users base fields with the CRM profile fields.
"""

import uuid as uuid_pkg
from datetime import datetime

from sqlmodel import Field, SQLModel

USER_ROLES = ("admin", "client")
USER_STATUSES = ("active", "suspended")


class User(SQLModel, table=True):
    """
    User model combining FastAPI Users authentication fields with the profile.

    FastAPI Users provides minimal required fields, we add:
    - username: unique display/login name
    - role: "admin" sees every client, "client" only its own data
    - status: "active" or "suspended" (suspended accounts are logged out)
    - phone: optional contact number
    """

    __tablename__ = "users"

    # FastAPI Users required fields
    id: uuid_pkg.UUID = Field(default_factory=uuid_pkg.uuid4, primary_key=True, nullable=False)
    email: str = Field(unique=True, index=True, nullable=False, max_length=320)
    hashed_password: str = Field(nullable=False, max_length=1024)
    is_active: bool = Field(default=True, nullable=False)
    is_superuser: bool = Field(default=False, nullable=False)
    is_verified: bool = Field(default=False, nullable=False)

    # Profile fields
    username: str = Field(index=True, unique=True, nullable=False, max_length=100)
    role: str = Field(default="client", max_length=50)
    status: str = Field(default="active", max_length=20)
    phone: str | None = Field(default=None, max_length=50)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_suspended(self) -> bool:
        return self.status == "suspended"
