# tests/test_auth.py

"""Tests for the identity service client."""

import os
import stat
import time
import unittest
from unittest.mock import MagicMock

from src.backend.auth import (
    SIGNED_IN,
    SIGNED_OUT,
    TOKEN_REFRESHED,
    AuthService,
)
from src.backend.errors import AuthError
from src.models.session import AuthSession
from src.storage.session_store import SessionStore


def _token_payload(user_id: str = "u1", expires_in: int = 3600) -> dict:
    return {
        "access_token": f"at-{user_id}",
        "refresh_token": f"rt-{user_id}",
        "expires_in": expires_in,
        "user": {"id": user_id, "email": f"{user_id}@example.com"},
    }


class TestAuthService(unittest.TestCase):
    """Session lifecycle against a mocked HTTP client."""

    def setUp(self) -> None:
        self.client = MagicMock()
        self.client.access_token = None
        self.store = SessionStore()
        self.auth = AuthService(self.client, self.store)
        self.events: list[tuple[str, AuthSession | None]] = []
        self.auth.on_auth_state_change(
            lambda event, session: self.events.append((event, session))
        )

    def test_sign_in_sets_token_persists_and_notifies(self) -> None:
        self.client.request.return_value = _token_payload()
        session = self.auth.sign_in_with_password("u1@example.com", "pw")
        self.assertEqual(session.user_id, "u1")
        self.assertEqual(self.client.access_token, "at-u1")
        self.assertEqual(self.store.load(), session)
        self.assertEqual(self.events, [(SIGNED_IN, session)])
        kwargs = self.client.request.call_args.kwargs
        self.assertEqual(kwargs["params"], {"grant_type": "password"})
        self.assertIs(kwargs["error_cls"], AuthError)

    def test_sign_in_failure_propagates(self) -> None:
        self.client.request.side_effect = AuthError(
            "Invalid login credentials", status=400
        )
        with self.assertRaises(AuthError):
            self.auth.sign_in_with_password("a@b.com", "wrong")
        self.assertEqual(self.events, [])
        self.assertIsNone(self.store.load())

    def test_sign_up_with_immediate_session(self) -> None:
        self.client.request.return_value = _token_payload("u2")
        result = self.auth.sign_up("u2@example.com", "pw")
        self.assertEqual(result.user_id, "u2")
        self.assertIsNotNone(result.session)
        self.assertEqual(self.events[0][0], SIGNED_IN)

    def test_sign_up_pending_confirmation(self) -> None:
        self.client.request.return_value = {
            "id": "u3", "email": "u3@example.com",
        }
        result = self.auth.sign_up("u3@example.com", "pw")
        self.assertEqual(result.user_id, "u3")
        self.assertIsNone(result.session)
        self.assertEqual(self.events, [])

    def test_sign_up_without_user_id_fails(self) -> None:
        self.client.request.return_value = {}
        with self.assertRaises(AuthError):
            self.auth.sign_up("x@example.com", "pw")

    def test_sign_out_clears_even_if_remote_fails(self) -> None:
        self.client.request.return_value = _token_payload()
        self.auth.sign_in_with_password("u1@example.com", "pw")
        self.client.request.side_effect = AuthError("offline")
        with self.assertRaises(AuthError):
            self.auth.sign_out()
        self.assertIsNone(self.client.access_token)
        self.assertIsNone(self.store.load())
        self.assertEqual(self.events[-1], (SIGNED_OUT, None))

    def test_get_session_restores_from_store(self) -> None:
        saved = AuthSession("at", "rt", "u1", expires_at=time.time() + 600)
        self.store.save(saved)
        self.assertEqual(self.auth.get_session(), saved)
        self.assertEqual(self.client.access_token, "at")
        self.client.request.assert_not_called()

    def test_get_session_refreshes_stale_token(self) -> None:
        stale = AuthSession("old", "rt", "u1", expires_at=time.time() - 5)
        self.store.save(stale)
        self.client.request.return_value = _token_payload()
        session = self.auth.get_session()
        assert session is not None
        self.assertEqual(session.access_token, "at-u1")
        self.assertEqual(self.events[0][0], TOKEN_REFRESHED)
        kwargs = self.client.request.call_args.kwargs
        self.assertEqual(kwargs["json"], {"refresh_token": "rt"})

    def test_failed_refresh_drops_session(self) -> None:
        stale = AuthSession("old", "rt", "u1", expires_at=time.time() - 5)
        self.store.save(stale)
        self.client.request.side_effect = AuthError("expired", status=400)
        self.assertIsNone(self.auth.get_session())
        self.assertIsNone(self.store.load())

    def test_offline_refresh_keeps_saved_session(self) -> None:
        stale = AuthSession("old", "rt", "u1", expires_at=time.time() - 5)
        self.store.save(stale)
        self.client.request.side_effect = AuthError(
            "Network error: timed out"
        )
        self.assertIsNone(self.auth.get_session())
        self.assertIsNone(self.client.access_token)
        self.assertEqual(self.store.load(), stale)

    def test_refresh_after_network_recovers(self) -> None:
        stale = AuthSession("old", "rt", "u1", expires_at=time.time() - 5)
        self.store.save(stale)
        self.client.request.side_effect = AuthError("Network error")
        self.assertIsNone(self.auth.get_session())

        self.client.request.side_effect = None
        self.client.request.return_value = _token_payload()
        session = self.auth.get_session()
        assert session is not None
        self.assertEqual(session.access_token, "at-u1")

    def test_ensure_fresh_session_keeps_valid_token(self) -> None:
        self.client.request.return_value = _token_payload()
        session = self.auth.sign_in_with_password("u1@example.com", "pw")
        self.client.request.reset_mock()
        self.assertEqual(self.auth.ensure_fresh_session(), session)
        self.client.request.assert_not_called()

    def test_ensure_fresh_session_refreshes_expiring_token(self) -> None:
        self.client.request.return_value = _token_payload(expires_in=30)
        self.auth.sign_in_with_password("u1@example.com", "pw")
        self.client.request.return_value = {
            **_token_payload(), "access_token": "at-new",
        }
        session = self.auth.ensure_fresh_session()
        assert session is not None
        self.assertEqual(session.access_token, "at-new")
        self.assertEqual(self.client.access_token, "at-new")
        self.assertEqual(self.events[-1], (TOKEN_REFRESHED, session))
        kwargs = self.client.request.call_args.kwargs
        self.assertEqual(kwargs["params"], {"grant_type": "refresh_token"})

    def test_ensure_fresh_session_rejected_signs_out(self) -> None:
        self.client.request.return_value = _token_payload(expires_in=30)
        self.auth.sign_in_with_password("u1@example.com", "pw")
        self.client.request.side_effect = AuthError(
            "Invalid Refresh Token", status=400
        )
        self.assertIsNone(self.auth.ensure_fresh_session())
        self.assertIsNone(self.client.access_token)
        self.assertIsNone(self.store.load())
        self.assertEqual(self.events[-1], (SIGNED_OUT, None))

    def test_ensure_fresh_session_offline_keeps_session(self) -> None:
        self.client.request.return_value = _token_payload(expires_in=30)
        session = self.auth.sign_in_with_password("u1@example.com", "pw")
        self.client.request.side_effect = AuthError("Network error")
        self.assertEqual(self.auth.ensure_fresh_session(), session)
        self.assertEqual(self.store.load(), session)
        self.assertEqual(self.events[-1][0], SIGNED_IN)

    def test_ensure_fresh_session_without_session(self) -> None:
        self.assertIsNone(self.auth.ensure_fresh_session())
        self.client.request.assert_not_called()

    def test_no_session(self) -> None:
        self.assertIsNone(self.auth.get_session())

    def test_unsubscribe_stops_notifications(self) -> None:
        received: list[str] = []
        subscription = self.auth.on_auth_state_change(
            lambda event, _session: received.append(event)
        )
        subscription.unsubscribe()
        self.client.request.return_value = _token_payload()
        self.auth.sign_in_with_password("u1@example.com", "pw")
        self.assertEqual(received, [])


class TestSessionStore(unittest.TestCase):
    """On-disk session persistence."""

    def test_save_load_clear(self) -> None:
        store = SessionStore()
        session = AuthSession("at", "rt", "u1", "a@b.com", 10.0)
        store.save(session)
        self.assertEqual(store.load(), session)
        store.clear()
        self.assertIsNone(store.load())

    @unittest.skipIf(os.name == "nt", "POSIX file modes only")
    def test_session_file_is_owner_only(self) -> None:
        store = SessionStore()
        store.save(AuthSession("at", "rt", "u1"))
        self.assertEqual(stat.S_IMODE(store.path.stat().st_mode), 0o600)

    @unittest.skipIf(os.name == "nt", "POSIX file modes only")
    def test_existing_readable_file_is_tightened(self) -> None:
        store = SessionStore()
        store.path.parent.mkdir(parents=True, exist_ok=True)
        store.path.write_text("{}", encoding="utf-8")
        os.chmod(store.path, 0o644)
        store.save(AuthSession("at", "rt", "u1"))
        self.assertEqual(stat.S_IMODE(store.path.stat().st_mode), 0o600)

    def test_clear_without_file(self) -> None:
        SessionStore().clear()

    def test_corrupt_file_discarded(self) -> None:
        store = SessionStore()
        store.path.parent.mkdir(parents=True, exist_ok=True)
        store.path.write_text("{not json", encoding="utf-8")
        self.assertIsNone(store.load())
        self.assertFalse(store.path.exists())


if __name__ == "__main__":
    unittest.main()
