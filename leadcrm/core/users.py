# leadcrm/core/users.py
"""
FastAPI Users configuration and authentication setup.
Admins and client users share one user table; the role decides what they can see.
"""
import logging
import uuid
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi_users import BaseUserManager, FastAPIUsers, UUIDIDMixin, exceptions
from fastapi_users.authentication import (
    AuthenticationBackend,
    BearerTransport,
    CookieTransport,
    JWTStrategy,
)
from fastapi_users.db import SQLAlchemyUserDatabase
from fastapi_users.password import PasswordHelper
from passlib.context import CryptContext
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.engine import get_session
from ..models.user import User
from .config import get_settings
from .session import SUSPENDED_MESSAGE

logger = logging.getLogger(__name__)

settings = get_settings()
SECRET = settings.secret_key

ACCESS_TOKEN_COOKIE_NAME = "leadcrm_access_token"
ACCESS_TOKEN_LIFETIME_SECONDS = settings.access_token_lifetime_seconds


# --- Authentication Transports ---
# 1. Bearer Token Transport (for API access via Authorization header)
bearer_transport = BearerTransport(tokenUrl="auth/jwt/login")

# 2. Cookie Transport (for browser sessions)
cookie_transport = CookieTransport(
    cookie_name=ACCESS_TOKEN_COOKIE_NAME,
    cookie_max_age=ACCESS_TOKEN_LIFETIME_SECONDS,
    cookie_httponly=True,
    cookie_secure=(settings.app_env == "production"),
    cookie_samesite="lax",
)


# --- JWT Strategy ---
def get_jwt_strategy() -> JWTStrategy:
    """Returns JWT strategy for token generation and validation"""
    return JWTStrategy(secret=SECRET, lifetime_seconds=ACCESS_TOKEN_LIFETIME_SECONDS)


auth_backend_jwt = AuthenticationBackend(
    name="jwt",
    transport=bearer_transport,
    get_strategy=get_jwt_strategy,
)

auth_backend_cookie = AuthenticationBackend(
    name="cookie",
    transport=cookie_transport,
    get_strategy=get_jwt_strategy,
)


# --- User Manager ---
class UserManager(UUIDIDMixin, BaseUserManager[User, uuid.UUID]):
    """
    Handles the user lifecycle. Self-registered users become active clients;
    the username defaults to the email when the sign-up form only asks for email.
    """

    reset_password_token_secret = SECRET
    verification_token_secret = SECRET

    async def create(self, user_create, safe: bool = False, request: Optional[Request] = None) -> User:
        if not getattr(user_create, "username", None):
            user_create.username = user_create.email
        existing = await self.user_db.get_by_username(user_create.username)
        if existing is not None:
            raise exceptions.UserAlreadyExists()
        return await super().create(user_create, safe=safe, request=request)

    async def on_after_register(self, user: User, request: Optional[Request] = None):
        logger.info(f"User registered: {user.username} ({user.email})")

    async def on_after_login(self, user: User, request: Optional[Request] = None, response=None):
        logger.info(f"User logged in: {user.username}")

    async def on_after_forgot_password(self, user: User, token: str, request: Optional[Request] = None):
        logger.info(f"Password reset requested for: {user.username}")


# --- User Database Adapter (email or username login) ---
class SQLAlchemyUserDatabaseByLogin(SQLAlchemyUserDatabase):
    """
    The login form's 'username' field may carry either the email or the
    username; both resolve to the same account.
    """

    async def get_by_email(self, email: str) -> Optional[User]:
        statement = select(self.user_table).where(
            or_(
                func.lower(self.user_table.email) == func.lower(email),
                self.user_table.username == email,
            )
        )
        result = await self.session.execute(statement)
        return result.scalars().first()

    async def get_by_username(self, username: str) -> Optional[User]:
        statement = select(self.user_table).where(self.user_table.username == username)
        result = await self.session.execute(statement)
        return result.scalars().first()


async def get_user_db(session: AsyncSession = Depends(get_session)):
    yield SQLAlchemyUserDatabaseByLogin(session, User)


# --- Argon2 Password Helper ---
argon2_context = CryptContext(schemes=["argon2"], deprecated="auto")
password_helper = PasswordHelper(argon2_context)


async def get_user_manager(user_db=Depends(get_user_db)):
    yield UserManager(user_db, password_helper)


fastapi_users = FastAPIUsers[User, uuid.UUID](
    get_user_manager,
    [auth_backend_jwt, auth_backend_cookie],
)

current_active_user = fastapi_users.current_user(active=True)


# --- Role-Based Access Control ---
VALID_ROLES = ["admin", "client"]


class RoleChecker:
    """
    Dependency class to check if the current user has one of the allowed roles.
    Suspended accounts are rejected whatever their role.

    Usage:
        @router.get("/admin-only")
        def admin_endpoint(user: User = Depends(RoleChecker(["admin"]))):
            ...
    """

    def __init__(self, allowed_roles: list[str]):
        self.allowed_roles = allowed_roles

    def __call__(self, user: User = Depends(current_active_user)) -> User:
        if user.status == "suspended":
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=SUSPENDED_MESSAGE)
        if user.role not in self.allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join(self.allowed_roles)}. Your role: {user.role}",
            )
        return user


require_admin = RoleChecker(["admin"])
require_any_role = RoleChecker(VALID_ROLES)
