# src/services/slogans.py

"""Hero slogans: runtime-editable list plus a rotating cursor."""

import logging
from collections.abc import Sequence
from typing import Any

from curl_cffi import CurlError
from curl_cffi import requests as curl_requests

from src.config.settings import Settings

logger = logging.getLogger("gidersen.slogans")


def parse_slogans(payload: Any) -> list[str] | None:
    """Extract the non-empty slogans from ``{"slogans": [...]}``."""
    if not isinstance(payload, dict):
        return None
    items = payload.get("slogans")
    if not isinstance(items, list):
        return None
    slogans = [s for s in items if isinstance(s, str) and s.strip()]
    return slogans or None


def fetch_slogans(
    url: str | None = None,
    session: curl_requests.Session | None = None,
) -> list[str]:
    """Fetch the slogan list, falling back to the built-in defaults."""
    target = url or Settings.SLOGANS_URL
    http = session or curl_requests.Session(
        impersonate=Settings.IMPERSONATE_BROWSER
    )
    try:
        resp = http.get(
            target,
            headers={"Cache-Control": "no-cache", "Pragma": "no-cache"},
            timeout=Settings.REQUEST_TIMEOUT,
        )
        if resp.status_code != 200:
            logger.info(
                "Slogans unavailable (HTTP %d), using defaults",
                resp.status_code,
            )
            return list(Settings.DEFAULT_SLOGANS)
        slogans = parse_slogans(resp.json())
    except (CurlError, OSError, ValueError) as exc:
        logger.info("Slogans fetch failed, using defaults: %s", exc)
        return list(Settings.DEFAULT_SLOGANS)
    finally:
        if session is None:
            http.close()

    if slogans is None:
        logger.info("Slogans payload malformed, using defaults")
        return list(Settings.DEFAULT_SLOGANS)
    logger.debug("Loaded %d slogans from %s", len(slogans), target)
    return slogans


class SloganRotator:
    """Cursor over a slogan list that wraps around."""

    def __init__(self, items: Sequence[str] | None = None) -> None:
        self.items: tuple[str, ...] = tuple(Settings.DEFAULT_SLOGANS)
        self.index = 0
        if items:
            self.set_items(items)

    @property
    def current(self) -> str:
        return self.items[self.index]

    def advance(self) -> str:
        """Move to the next slogan and return it."""
        self.index = (self.index + 1) % len(self.items)
        return self.current

    def set_items(self, items: Sequence[str]) -> None:
        """Swap the list; a different list restarts from the first slogan."""
        new_items = tuple(items) or tuple(Settings.DEFAULT_SLOGANS)
        if new_items != self.items:
            self.items = new_items
            self.index = 0
