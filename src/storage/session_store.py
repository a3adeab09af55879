# src/storage/session_store.py

"""Keeps the signed-in session on disk between launches."""

import json
import logging
import os
from pathlib import Path

from src.config.settings import Settings
from src.models.session import AuthSession

logger = logging.getLogger("gidersen.storage")

# The file holds a refresh token; only the owner may read it
_FILE_MODE = 0o600


class SessionStore:
    """Reads and writes the auth session JSON file."""

    def __init__(self, path: Path | None = None) -> None:
        self.path: Path = path or Settings.SESSION_FILE

    def load(self) -> AuthSession | None:
        """Return the saved session, or ``None`` if missing or unreadable."""
        if not self.path.exists():
            return None
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
            return AuthSession.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning(
                "Discarding unreadable session file %s: %s",
                self.path,
                exc,
            )
            self.clear()
            return None

    def save(self, session: AuthSession) -> None:
        """Persist *session*, replacing any previous one."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(
            self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _FILE_MODE
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(session.to_dict(), f, indent=2)
        # A file from an older run keeps its mode through O_CREAT
        os.chmod(self.path, _FILE_MODE)
        logger.debug("Saved session for user %s", session.user_id)

    def clear(self) -> None:
        """Forget the saved session."""
        try:
            self.path.unlink()
            logger.debug("Removed session file %s", self.path)
        except FileNotFoundError:
            pass
