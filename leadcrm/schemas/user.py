# leadcrm/schemas/user.py
"""
Pydantic schemas for FastAPI Users.
These schemas control what data is sent/received via the API.
"""
import uuid
from datetime import datetime
from typing import Literal, Optional

from fastapi_users import schemas
from pydantic import BaseModel


class UserRead(schemas.BaseUser[uuid.UUID]):
    """
    Schema for reading user data (API responses).
    Includes all safe-to-expose profile fields.
    """

    username: str
    role: str
    status: str
    phone: Optional[str] = None
    created_at: Optional[datetime] = None


class UserCreate(schemas.BaseUserCreate):
    """
    Schema for self-registration. Email and password are enough; the role is
    never accepted from the public form (new accounts are clients).
    """

    username: Optional[str] = None
    phone: Optional[str] = None


class UserUpdate(schemas.BaseUserUpdate):
    """Schema for the fastapi-users self-service update route."""

    username: Optional[str] = None
    phone: Optional[str] = None


class ProfileUpdate(BaseModel):
    """Admin-side profile edit (also used by a user on their own profile)."""

    username: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[Literal["admin", "client"]] = None


class StatusUpdate(BaseModel):
    status: Literal["active", "suspended"]
