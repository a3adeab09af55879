# src/backend/client.py

"""Thin HTTP wrapper around the hosted database and object storage."""

import logging
import threading
from typing import Any
from urllib.parse import quote

from curl_cffi import CurlError
from curl_cffi import requests as curl_requests

from src.backend.errors import BackendError
from src.config.settings import Settings

logger = logging.getLogger("gidersen.backend")


class BackendClient:
    """Single-attempt REST and storage calls against the backend.

    Requests carry the project's anon key; once a user signs in, the
    auth service sets :attr:`access_token` and row-level security sees
    that user instead.
    """

    def __init__(
        self,
        url: str | None = None,
        anon_key: str | None = None,
        session: curl_requests.Session | None = None,
    ) -> None:
        self.settings = Settings()
        self.url = (url or self.settings.SUPABASE_URL).rstrip("/")
        self.anon_key = (
            anon_key
            if anon_key is not None
            else self.settings.SUPABASE_ANON_KEY
        )
        self._shared_session = session
        self._local = threading.local()
        self.access_token: str | None = None

    @property
    def session(self) -> curl_requests.Session:
        """HTTP session for the calling thread (curl handles are not shared)."""
        if self._shared_session is not None:
            return self._shared_session
        http: curl_requests.Session | None = getattr(
            self._local, "session", None
        )
        if http is None:
            http = curl_requests.Session(
                impersonate=self.settings.IMPERSONATE_BROWSER
            )
            self._local.session = http
        return http

    def headers(
        self, extra: dict[str, str] | None = None,
    ) -> dict[str, str]:
        """Auth headers for the current user (or the anon role)."""
        bearer = self.access_token or self.anon_key
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {bearer}",
        }
        if extra:
            headers.update(extra)
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        data: bytes | None = None,
        headers: dict[str, str] | None = None,
        error_cls: type[BackendError] = BackendError,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Raises:
            BackendError: transport failure or a non-2xx response.
        """
        url = f"{self.url}{path}"
        try:
            resp = self.session.request(
                method,
                url,
                params=params,
                json=json,
                data=data,
                headers=self.headers(headers),
                timeout=self.settings.REQUEST_TIMEOUT,
            )
        except (CurlError, OSError) as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise error_cls(f"Network error: {exc}") from exc

        if resp.status_code >= 400:
            try:
                payload: Any = resp.json()
            except ValueError:
                payload = None
            error = error_cls.from_payload(
                resp.status_code, payload, resp.text[:200]
            )
            logger.warning(
                "%s %s -> HTTP %d: %s",
                method,
                path,
                resp.status_code,
                error.message,
            )
            raise error

        logger.debug("%s %s -> HTTP %d", method, path, resp.status_code)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return resp.text

    # ── Database (PostgREST) ─────────────────────────────

    def select(
        self,
        table: str,
        columns: str = "*",
        filters: dict[str, str] | None = None,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Read rows; *filters* use PostgREST operators (``eq.1``)."""
        params: dict[str, str] = {"select": columns}
        params.update(filters or {})
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = str(limit)
        rows = self.request("GET", f"/rest/v1/{table}", params=params)
        return list(rows or [])

    def insert(
        self, table: str, payload: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """Insert one row and return the stored representation."""
        rows = self.request(
            "POST",
            f"/rest/v1/{table}",
            json=payload,
            headers={"Prefer": "return=representation"},
        )
        return list(rows or [])

    def update(
        self,
        table: str,
        payload: dict[str, Any],
        filters: dict[str, str],
    ) -> list[dict[str, Any]]:
        """Patch the rows matched by *filters*."""
        if not filters:
            raise ValueError("update() requires at least one filter")
        rows = self.request(
            "PATCH",
            f"/rest/v1/{table}",
            params=filters,
            json=payload,
            headers={"Prefer": "return=representation"},
        )
        return list(rows or [])

    # ── Object storage ───────────────────────────────────

    def upload(
        self,
        bucket: str,
        key: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Store *content* under ``bucket/key`` and return the key."""
        self.request(
            "POST",
            f"/storage/v1/object/{bucket}/{quote(key)}",
            data=content,
            headers={
                "Content-Type": content_type,
                "x-upsert": "false",
            },
        )
        return key

    def public_url(self, bucket: str, key: str) -> str:
        """Public URL of an object in a public bucket."""
        return (
            f"{self.url}/storage/v1/object/public/"
            f"{bucket}/{quote(key)}"
        )
