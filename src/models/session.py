# src/models/session.py

"""Auth session issued by the identity service."""

import time
from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class AuthSession:
    """Tokens and owner of a signed-in session."""

    access_token: str
    refresh_token: str
    user_id: str
    email: str = ""
    expires_at: float = 0.0

    def is_expired(self, margin: float = 0.0) -> bool:
        """True when the access token expires within *margin* seconds."""
        if not self.expires_at:
            return False
        return time.time() + margin >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        """Plain dict for JSON persistence."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AuthSession":
        """Rebuild a session saved with :meth:`to_dict`."""
        return cls(
            access_token=str(data["access_token"]),
            refresh_token=str(data["refresh_token"]),
            user_id=str(data["user_id"]),
            email=str(data.get("email") or ""),
            expires_at=float(data.get("expires_at") or 0.0),
        )

    @classmethod
    def from_token_response(
        cls, payload: dict[str, Any],
    ) -> "AuthSession":
        """Build a session from an auth token endpoint response.

        The response carries either an absolute ``expires_at`` or a
        relative ``expires_in``; both are normalised to epoch seconds.
        """
        user: dict[str, Any] = payload.get("user") or {}
        expires_at = payload.get("expires_at")
        if not expires_at and payload.get("expires_in"):
            expires_at = time.time() + float(payload["expires_in"])
        return cls(
            access_token=str(payload["access_token"]),
            refresh_token=str(payload.get("refresh_token") or ""),
            user_id=str(user.get("id") or ""),
            email=str(user.get("email") or ""),
            expires_at=float(expires_at or 0.0),
        )
