"""Pydantic schemas package"""
from .user import ProfileUpdate, StatusUpdate, UserCreate, UserRead, UserUpdate

__all__ = ["UserRead", "UserCreate", "UserUpdate", "ProfileUpdate", "StatusUpdate"]
