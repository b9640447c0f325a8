"""
Tests for HttpAuthBackend against a mocked HTTP transport.
"""
import json
import unittest
import uuid
from unittest.mock import Mock
from urllib.parse import parse_qs

import httpx

from leadcrm.core.auth_client import SIGNED_IN, SIGNED_OUT, AuthError, HttpAuthBackend

USER_ID = uuid.uuid4()


class FakeAuthServer:
    """Answers the few endpoints the backend talks to."""

    def __init__(self):
        self.valid_token = "good-token"
        self.profile_status = 200
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/auth/jwt/login":
            form = parse_qs(request.content.decode())
            if form.get("password") == ["secret"]:
                return httpx.Response(200, json={"access_token": self.valid_token, "token_type": "bearer"})
            return httpx.Response(400, json={"detail": "LOGIN_BAD_CREDENTIALS"})
        if path == "/auth/register":
            body = json.loads(request.content)
            if body["email"] == "taken@example.com":
                return httpx.Response(400, json={"detail": "REGISTER_USER_ALREADY_EXISTS"})
            return httpx.Response(201, json={"id": str(USER_ID), "email": body["email"]})
        if path == "/auth/jwt/logout":
            return httpx.Response(204)

        if request.headers.get("Authorization") != f"Bearer {self.valid_token}":
            return httpx.Response(401, json={"detail": "Unauthorized"})
        if path == "/users/me":
            return httpx.Response(200, json={"id": str(USER_ID), "email": "jane@example.com"})
        if path == f"/api/users/{USER_ID}":
            if self.profile_status != 200:
                return httpx.Response(self.profile_status, json={"detail": "User not found."})
            return httpx.Response(200, json={"id": str(USER_ID), "email": "jane@example.com", "status": "active"})
        return httpx.Response(404)


class TestHttpAuthBackend(unittest.TestCase):
    def setUp(self):
        self.server = FakeAuthServer()
        client = httpx.Client(base_url="http://crm.test", transport=httpx.MockTransport(self.server))
        self.backend = HttpAuthBackend(client=client)
        self.events = Mock()
        self.unsubscribe = self.backend.on_auth_state_change(self.events)

    def tearDown(self):
        self.backend.close()

    def test_sign_in(self):
        session = self.backend.sign_in("jane@example.com", "secret")

        self.assertEqual(session.user_id, USER_ID)
        self.assertEqual(session.access_token, "good-token")
        self.assertIs(self.backend.get_session(), session)
        self.events.assert_not_called()

    def test_bad_credentials(self):
        with self.assertRaises(AuthError):
            self.backend.sign_in("jane@example.com", "wrong")
        self.assertIsNone(self.backend.get_session())

    def test_sign_up_signs_in(self):
        session = self.backend.sign_up("jane@example.com", "secret", username="jane")
        self.assertEqual(session.email, "jane@example.com")
        register = next(r for r in self.server.requests if r.url.path == "/auth/register")
        self.assertEqual(json.loads(register.content)["username"], "jane")

    def test_sign_up_rejected(self):
        with self.assertRaises(AuthError) as ctx:
            self.backend.sign_up("taken@example.com", "secret")
        self.assertEqual(str(ctx.exception), "REGISTER_USER_ALREADY_EXISTS")

    def test_fetch_profile(self):
        self.backend.sign_in("jane@example.com", "secret")
        self.assertEqual(self.backend.fetch_profile(USER_ID)["status"], "active")

        self.server.profile_status = 404
        self.assertIsNone(self.backend.fetch_profile(USER_ID))

    def test_rejected_token_emits_signed_out(self):
        self.backend.sign_in("jane@example.com", "secret")
        self.server.valid_token = "rotated"

        with self.assertRaises(AuthError):
            self.backend.fetch_profile(USER_ID)

        self.events.assert_called_once_with(SIGNED_OUT, None)
        self.assertIsNone(self.backend.get_session())

    def test_restore(self):
        session = self.backend.restore("good-token")
        self.events.assert_called_once_with(SIGNED_IN, session)

        self.events.reset_mock()
        self.assertIsNone(self.backend.restore("stale-token"))
        self.events.assert_called_once_with(SIGNED_OUT, None)

    def test_unsubscribe(self):
        self.unsubscribe()
        self.backend.restore("good-token")
        self.events.assert_not_called()

    def test_sign_out(self):
        self.backend.sign_in("jane@example.com", "secret")
        self.backend.sign_out()

        self.assertIsNone(self.backend.get_session())
        self.assertEqual(self.server.requests[-1].url.path, "/auth/jwt/logout")


if __name__ == "__main__":
    unittest.main()
