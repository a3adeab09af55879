# src/backend/auth.py

"""Identity service client: sign-in, sign-up, sessions, notifications."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from src.backend.client import BackendClient
from src.backend.errors import AuthError
from src.config.settings import Settings
from src.models.session import AuthSession
from src.storage.session_store import SessionStore

logger = logging.getLogger("gidersen.auth")

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"

AuthListener = Callable[[str, AuthSession | None], None]

# Statuses with which the token endpoint rejects a refresh token
_REJECTED_STATUSES = (400, 401)


@dataclass
class SignUpResult:
    """Outcome of account creation.

    ``session`` is ``None`` when the project requires email confirmation
    before the first sign-in.
    """

    user_id: str
    email: str
    session: AuthSession | None


class Subscription:
    """Handle returned by :meth:`AuthService.on_auth_state_change`."""

    def __init__(
        self, service: "AuthService", listener: AuthListener,
    ) -> None:
        self._service = service
        self._listener = listener

    def unsubscribe(self) -> None:
        """Stop receiving notifications."""
        self._service._remove_listener(self._listener)


class AuthService:
    """Talks to the hosted auth API and tracks the current session.

    Calls are blocking; run them off the event loop. Listeners are
    invoked on whichever thread changed the session.
    """

    def __init__(
        self,
        client: BackendClient,
        store: SessionStore | None = None,
    ) -> None:
        self.client = client
        self.store = store or SessionStore()
        self._session: AuthSession | None = None
        self._listeners: list[AuthListener] = []
        self._lock = threading.Lock()

    # ── Notifications ────────────────────────────────────

    def on_auth_state_change(self, listener: AuthListener) -> Subscription:
        """Register *listener* for every later session change."""
        with self._lock:
            self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove_listener(self, listener: AuthListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _set_session(
        self, event: str, session: AuthSession | None,
    ) -> None:
        self._session = session
        self.client.access_token = (
            session.access_token if session else None
        )
        if session:
            self.store.save(session)
        else:
            self.store.clear()

        with self._lock:
            listeners = list(self._listeners)
        logger.info(
            "Auth event %s (user=%s)",
            event,
            session.user_id if session else "-",
        )
        for listener in listeners:
            listener(event, session)

    # ── Operations ───────────────────────────────────────

    def get_session(self) -> AuthSession | None:
        """Current session, restored from disk and refreshed if stale."""
        session = self._session or self.store.load()
        if session is None:
            return None
        if session.is_expired(Settings.SESSION_REFRESH_MARGIN):
            try:
                return self.refresh_session(session)
            except AuthError as exc:
                logger.warning("Session refresh failed: %s", exc)
                self._session = None
                self.client.access_token = None
                # Offline: keep the refresh token for the next launch
                if exc.status in _REJECTED_STATUSES:
                    self.store.clear()
                return None
        self._session = session
        self.client.access_token = session.access_token
        return session

    def ensure_fresh_session(self) -> AuthSession | None:
        """Current session, refreshed first if its token is about to expire.

        Call before authenticated writes so a long-running app keeps a
        valid token. A refresh the server rejects ends the session and
        notifies listeners with ``SIGNED_OUT``. A network failure keeps
        the current session, and the write that follows reports it.
        """
        session = self._session
        if session is None:
            return None
        if not session.is_expired(Settings.SESSION_REFRESH_MARGIN):
            return session
        try:
            return self.refresh_session(session)
        except AuthError as exc:
            if exc.status not in _REJECTED_STATUSES:
                logger.warning(
                    "Token refresh failed, keeping session: %s", exc
                )
                return session
            logger.warning("Refresh token rejected, signing out: %s", exc)
            self._set_session(SIGNED_OUT, None)
            return None

    def refresh_session(self, session: AuthSession) -> AuthSession:
        """Exchange the refresh token for a new session."""
        payload = self.client.request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": session.refresh_token},
            error_cls=AuthError,
        )
        refreshed = AuthSession.from_token_response(payload)
        self._set_session(TOKEN_REFRESHED, refreshed)
        return refreshed

    def sign_in_with_password(
        self, email: str, password: str,
    ) -> AuthSession:
        """Sign in with email and password.

        Raises:
            AuthError: wrong credentials or any other auth failure.
        """
        payload = self.client.request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
            error_cls=AuthError,
        )
        session = AuthSession.from_token_response(payload)
        self._set_session(SIGNED_IN, session)
        return session

    def sign_up(self, email: str, password: str) -> SignUpResult:
        """Create an account; signs in directly when no confirmation is needed."""
        payload: dict[str, Any] = self.client.request(
            "POST",
            "/auth/v1/signup",
            json={"email": email, "password": password},
            error_cls=AuthError,
        ) or {}

        if payload.get("access_token"):
            session = AuthSession.from_token_response(payload)
            self._set_session(SIGNED_IN, session)
            return SignUpResult(
                user_id=session.user_id,
                email=session.email,
                session=session,
            )

        # Confirmation pending: the body is the bare user object
        user: dict[str, Any] = payload.get("user") or payload
        user_id = str(user.get("id") or "")
        if not user_id:
            raise AuthError("Sign-up response did not include a user id")
        return SignUpResult(
            user_id=user_id,
            email=str(user.get("email") or email),
            session=None,
        )

    def sign_out(self) -> None:
        """End the remote session; the local session is dropped regardless."""
        try:
            if self._session is not None:
                self.client.request(
                    "POST",
                    "/auth/v1/logout",
                    error_cls=AuthError,
                )
        finally:
            self._set_session(SIGNED_OUT, None)
