# leadcrm/core/session.py
"""
AuthSession owns the signed-in session and the matching user profile.

Consumers read `state`, `user` and `session` and call `refresh()` when the
profile may have changed; nothing else mutates them.

    anonymous --session--> pending_profile --profile--> authenticated
                                  |  \--no profile after retry--> anonymous
                                  \--suspended--> suspended (signed out)
"""
import dataclasses
import logging
import time
import uuid
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .auth_client import SIGNED_OUT, AuthTokenSession, HttpAuthBackend
from .config import get_settings

logger = logging.getLogger(__name__)

SUSPENDED_MESSAGE = "This account has been suspended."


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    PENDING_PROFILE = "pending_profile"
    AUTHENTICATED = "authenticated"
    SUSPENDED = "suspended"


class AccountSuspendedError(Exception):
    def __init__(self, message: str = SUSPENDED_MESSAGE):
        super().__init__(message)


@dataclasses.dataclass(frozen=True)
class UserProfile:
    id: uuid.UUID
    email: str
    username: Optional[str] = None
    role: str = "client"
    status: str = "active"
    phone: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        return cls(
            id=uuid.UUID(str(data["id"])),
            email=data["email"],
            username=data.get("username"),
            role=data.get("role") or "client",
            status=data.get("status") or "active",
            phone=data.get("phone"),
        )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_suspended(self) -> bool:
        return self.status == "suspended"


class AuthSession:
    def __init__(
        self,
        backend: HttpAuthBackend,
        retry_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._backend = backend
        self._retry_delay = get_settings().profile_retry_delay_seconds if retry_delay is None else retry_delay
        self._sleep = sleep
        self._state = SessionState.ANONYMOUS
        self._session: Optional[AuthTokenSession] = None
        self._user: Optional[UserProfile] = None
        self._unsubscribe = backend.on_auth_state_change(self._on_auth_event)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def user(self) -> Optional[UserProfile]:
        return self._user

    @property
    def session(self) -> Optional[AuthTokenSession]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._state == SessionState.AUTHENTICATED

    def _clear(self, state: SessionState = SessionState.ANONYMOUS) -> None:
        self._session = None
        self._user = None
        self._state = state

    def _on_auth_event(self, event: str, session: Optional[AuthTokenSession]) -> None:
        if event == SIGNED_OUT or session is None:
            self._clear()
            return
        try:
            self._apply(session)
        except AccountSuspendedError:
            logger.warning(f"Restored session of suspended user {session.user_id} was closed")

    def _load_profile(self, user_id: uuid.UUID) -> Optional[UserProfile]:
        """Fetch the profile, retrying once after a delay when it is not there yet."""
        data = self._backend.fetch_profile(user_id)
        if data is None:
            logger.info(f"Profile for {user_id} not found, retrying in {self._retry_delay}s")
            self._sleep(self._retry_delay)
            data = self._backend.fetch_profile(user_id)
        return UserProfile.from_dict(data) if data else None

    def _apply(self, session: Optional[AuthTokenSession]) -> Optional[UserProfile]:
        if session is None:
            self._clear()
            return None

        self._session = session
        self._state = SessionState.PENDING_PROFILE
        profile = self._load_profile(session.user_id)

        if profile is None:
            logger.error(f"Profile for user {session.user_id} is missing, forcing logout")
            self.logout()
            return None

        if profile.is_suspended:
            logger.warning(f"Suspended user {profile.username or profile.email} tried to sign in")
            self._backend.sign_out()
            self._clear(SessionState.SUSPENDED)
            raise AccountSuspendedError()

        self._user = profile
        self._state = SessionState.AUTHENTICATED
        return profile

    # --- Operations ---
    def start(self) -> Optional[UserProfile]:
        """Pick up whatever session the backend already holds."""
        return self._apply(self._backend.get_session())

    def login(self, email: str, password: str) -> Optional[UserProfile]:
        """
        Raises:
            AccountSuspendedError: the account exists but is suspended.
        """
        return self._apply(self._backend.sign_in(email, password))

    def sign_up(self, email: str, password: str, username: Optional[str] = None) -> Optional[UserProfile]:
        return self._apply(self._backend.sign_up(email, password, username=username))

    def logout(self) -> None:
        try:
            self._backend.sign_out()
        finally:
            self._clear()

    def refresh(self) -> Optional[UserProfile]:
        """Re-read the profile of the current session."""
        if self._session is None:
            return None
        return self._apply(self._session)

    def update_user_context(self, **changes: Any) -> UserProfile:
        """Apply locally known profile edits without a round trip."""
        if self._user is None:
            raise RuntimeError("No authenticated user to update.")
        allowed = {f.name for f in dataclasses.fields(UserProfile)} - {"id"}
        self._user = dataclasses.replace(self._user, **{k: v for k, v in changes.items() if k in allowed})
        return self._user

    def close(self) -> None:
        self._unsubscribe()
