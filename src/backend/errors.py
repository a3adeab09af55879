# src/backend/errors.py

"""Errors raised by the hosted backend clients."""

from typing import Any

_INVALID_CREDENTIAL_CODES: frozenset[str] = frozenset({
    "invalid_credentials",
    "invalid_grant",
})


class BackendError(Exception):
    """A backend call failed in transport or returned a non-2xx status."""

    def __init__(
        self,
        message: str,
        status: int = 0,
        code: str = "",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code

    @classmethod
    def from_payload(
        cls, status: int, payload: Any, fallback: str = "",
    ) -> "BackendError":
        """Build an error from a JSON error body.

        PostgREST, storage and auth all use slightly different keys for
        the same information, so every known spelling is checked.
        """
        message = fallback or f"HTTP {status}"
        code = ""
        if isinstance(payload, dict):
            for key in ("error_description", "msg", "message", "error"):
                value = payload.get(key)
                if isinstance(value, str) and value:
                    message = value
                    break
            for key in ("error_code", "code", "error"):
                value = payload.get(key)
                if isinstance(value, str) and value:
                    code = value
                    break
        return cls(message, status=status, code=code)

    def __str__(self) -> str:
        if self.status:
            return f"{self.message} (HTTP {self.status})"
        return self.message


class AuthError(BackendError):
    """An identity service call failed."""

    @property
    def is_invalid_credentials(self) -> bool:
        """True when the failure is a wrong email/password pair."""
        if self.code in _INVALID_CREDENTIAL_CODES:
            return True
        return "invalid login credentials" in self.message.lower()
