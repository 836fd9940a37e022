import asyncio
import json
import unittest

from tests.fakes import USER, VALID_TOKEN, FakeIdentityProvider

from fastapi.testclient import TestClient

from app.api.dependencies import get_identity_provider, get_session_bus
from app.api.v1.auth import session_event_stream
from app.core.config import settings
from app.core.session_events import SessionEvent, SessionEventBus
from app.integrations.supabase_client import EXPIRED_LINK_MESSAGE, AuthError, friendly_auth_message
from app.main import app

AUTH = {"Authorization": f"Bearer {VALID_TOKEN}"}


class RecordingBus(SessionEventBus):
    def __init__(self):
        super().__init__()
        self.published: list[SessionEvent] = []

    def publish(self, event: SessionEvent) -> int:
        self.published.append(event)
        return super().publish(event)


class AuthApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        self.identity = FakeIdentityProvider()
        self.bus = RecordingBus()
        app.dependency_overrides[get_identity_provider] = lambda: self.identity
        app.dependency_overrides[get_session_bus] = lambda: self.bus

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_magic_link_is_sent_with_redirect(self):
        response = self.client.post("/v1/auth/magic-link", json={"email": "jane@example.com"})
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["sent"])
        self.assertEqual(self.identity.sent_links, [("jane@example.com", settings.auth_redirect_url)])

    def test_magic_link_requires_an_email(self):
        response = self.client.post("/v1/auth/magic-link", json={"email": "not-an-email"})
        self.assertEqual(response.status_code, 422)
        self.assertEqual(self.identity.sent_links, [])

    def test_callback_error_is_translated(self):
        response = self.client.post(
            "/v1/auth/callback",
            json={"error": "access_denied", "error_description": "Email link is invalid or has expired"},
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], EXPIRED_LINK_MESSAGE)
        self.assertEqual(self.bus.published, [])

    def test_callback_without_tokens(self):
        response = self.client.post("/v1/auth/callback", json={})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "No valid session found.")

    def test_callback_exchange_failure_keeps_raw_message(self):
        self.identity.exchange_error = AuthError("Network unreachable")
        response = self.client.post("/v1/auth/callback", json={"access_token": "a", "refresh_token": "r"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"], "Network unreachable")

    def test_callback_signs_in(self):
        response = self.client.post(
            "/v1/auth/callback",
            json={"access_token": VALID_TOKEN, "refresh_token": "refresh-1"},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["has_session"])
        self.assertEqual(body["user_id"], USER.id)
        self.assertEqual(body["refresh_token"], "refresh-1")
        self.assertEqual([event.type for event in self.bus.published], ["SIGNED_IN"])

    def test_current_session(self):
        response = self.client.get("/v1/auth/session", headers=AUTH)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["email"], USER.email)
        self.assertIsNone(response.json()["access_token"])

    def test_sign_out_publishes_event(self):
        response = self.client.post("/v1/auth/sign-out", headers=AUTH)
        self.assertEqual(response.status_code, 204)
        self.assertEqual(self.identity.signed_out, [VALID_TOKEN])
        self.assertEqual([(event.type, event.user_id) for event in self.bus.published], [("SIGNED_OUT", USER.id)])

    def test_sign_out_requires_session(self):
        self.assertEqual(self.client.post("/v1/auth/sign-out").status_code, 401)


class FriendlyAuthMessageTests(unittest.TestCase):
    def test_expired_or_invalid_links(self):
        self.assertEqual(friendly_auth_message("Token has expired"), EXPIRED_LINK_MESSAGE)
        self.assertEqual(friendly_auth_message("INVALID grant"), EXPIRED_LINK_MESSAGE)

    def test_other_messages_pass_through(self):
        self.assertEqual(friendly_auth_message("Rate limit reached"), "Rate limit reached")
        self.assertEqual(friendly_auth_message(None), "Authentication failed.")


class SessionEventStreamTests(unittest.IsolatedAsyncioTestCase):
    async def test_stream_ends_after_sign_out_and_releases_subscription(self):
        bus = SessionEventBus()
        stream = session_event_stream(bus, USER, keepalive_s=0.01)

        first = await stream.__anext__()
        self.assertTrue(first.startswith("event: SESSION\n"))
        self.assertEqual(bus.subscriber_count(USER.id), 1)

        self.assertEqual(await stream.__anext__(), ": keepalive\n\n")

        bus.publish(SessionEvent(type="SIGNED_OUT", user_id=USER.id))
        signed_out = await stream.__anext__()
        self.assertTrue(signed_out.startswith("event: SIGNED_OUT\n"))
        payload = json.loads(signed_out.split("data: ", 1)[1])
        self.assertFalse(payload["has_session"])

        with self.assertRaises(StopAsyncIteration):
            await stream.__anext__()
        self.assertEqual(bus.subscriber_count(USER.id), 0)

    async def test_events_for_other_users_are_not_delivered(self):
        bus = SessionEventBus()
        async with bus.subscribe(USER.id) as queue:
            self.assertEqual(bus.publish(SessionEvent(type="SIGNED_IN", user_id="someone-else")), 0)
            bus.publish(SessionEvent(type="SIGNED_IN", user_id=USER.id))
            event = await asyncio.wait_for(queue.get(), timeout=1)
            self.assertEqual(event.user_id, USER.id)
            self.assertTrue(queue.empty())


if __name__ == "__main__":
    unittest.main()
