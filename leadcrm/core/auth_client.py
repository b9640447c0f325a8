# leadcrm/core/auth_client.py
"""
HTTP client for the authentication endpoints served by leadcrm.main.

It keeps the current access token and tells subscribers when the session
changes from the outside: a restored token (SIGNED_IN) or an API call
rejected with 401 (SIGNED_OUT).
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

AuthListener = Callable[[str, Optional["AuthTokenSession"]], None]


class AuthError(Exception):
    """Raised when the auth service rejects a request."""


@dataclass(frozen=True)
class AuthTokenSession:
    access_token: str
    user_id: uuid.UUID
    email: str


def _error_detail(response: httpx.Response) -> str:
    try:
        detail = response.json().get("detail")
    except ValueError:
        detail = None
    return str(detail or response.text or response.status_code)


class HttpAuthBackend:
    def __init__(self, base_url: str = "", client: Optional[httpx.Client] = None, timeout: float = 10.0):
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)
        self._session: Optional[AuthTokenSession] = None
        self._listeners: List[AuthListener] = []

    # --- Subscriptions ---
    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: str, session: Optional[AuthTokenSession]) -> None:
        for listener in list(self._listeners):
            listener(event, session)

    def _headers(self, token: Optional[str] = None) -> Dict[str, str]:
        token = token or (self._session.access_token if self._session else None)
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _expire(self) -> None:
        logger.info("Access token rejected, signing out")
        self._session = None
        self._emit(SIGNED_OUT, None)

    def _session_for_token(self, token: str) -> Optional[AuthTokenSession]:
        response = self._client.get("/users/me", headers=self._headers(token))
        if response.status_code == 401:
            return None
        response.raise_for_status()
        me = response.json()
        return AuthTokenSession(access_token=token, user_id=uuid.UUID(str(me["id"])), email=me["email"])

    # --- Auth operations ---
    def get_session(self) -> Optional[AuthTokenSession]:
        return self._session

    def sign_in(self, email: str, password: str) -> AuthTokenSession:
        response = self._client.post("/auth/jwt/login", data={"username": email, "password": password})
        if response.status_code == 400:
            raise AuthError("Invalid login credentials.")
        response.raise_for_status()

        session = self._session_for_token(response.json()["access_token"])
        if session is None:
            raise AuthError("The issued access token was rejected.")
        self._session = session
        return session

    def sign_up(self, email: str, password: str, username: Optional[str] = None) -> AuthTokenSession:
        body: Dict[str, Any] = {"email": email, "password": password}
        if username:
            body["username"] = username
        response = self._client.post("/auth/register", json=body)
        if response.status_code == 400:
            raise AuthError(_error_detail(response))
        response.raise_for_status()
        return self.sign_in(email, password)

    def sign_out(self) -> None:
        if self._session is not None:
            try:
                self._client.post("/auth/jwt/logout", headers=self._headers())
            except httpx.HTTPError as e:
                logger.warning(f"Logout request failed: {e}")
        self._session = None

    def restore(self, token: str) -> Optional[AuthTokenSession]:
        """Resume a stored token. Emits SIGNED_IN when it is still valid."""
        session = self._session_for_token(token)
        if session is None:
            self._expire()
            return None
        self._session = session
        self._emit(SIGNED_IN, session)
        return session

    def fetch_profile(self, user_id: uuid.UUID) -> Optional[Dict[str, Any]]:
        """The user's profile row, or None when it does not exist (yet)."""
        response = self._client.get(f"/api/users/{user_id}", headers=self._headers())
        if response.status_code == 404:
            return None
        if response.status_code == 401:
            self._expire()
            raise AuthError("Session expired.")
        response.raise_for_status()
        return response.json()

    def close(self) -> None:
        self._client.close()
