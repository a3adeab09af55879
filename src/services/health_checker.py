# src/services/health_checker.py

"""Backend connectivity health checker."""

import asyncio
import logging
import time
from dataclasses import dataclass

from src.backend.client import BackendClient
from src.config.settings import Settings

logger = logging.getLogger("gidersen.health")

_HEALTH_TIMEOUT = 10  # seconds per endpoint
_SLOW_MS = 3000


@dataclass
class HealthResult:
    """Result of a single endpoint health check."""

    endpoint_id: str
    status: str  # "ok", "slow", "down"
    latency_ms: float
    message: str


def probe_endpoint(
    endpoint: dict[str, str], client: BackendClient,
) -> HealthResult:
    """GET one backend endpoint and classify the response."""
    endpoint_id = endpoint["id"]
    url = endpoint.get("url") or f"{client.url}{endpoint['path']}"

    start = time.monotonic()
    try:
        resp = client.session.get(
            url,
            headers=client.headers(),
            timeout=_HEALTH_TIMEOUT,
        )
    except Exception as exc:
        elapsed_ms = (time.monotonic() - start) * 1000
        return HealthResult(
            endpoint_id=endpoint_id,
            status="down",
            latency_ms=elapsed_ms,
            message=str(exc)[:80],
        )
    elapsed_ms = (time.monotonic() - start) * 1000

    # 401 still proves the service answers; only the key is missing
    if resp.status_code >= 500 or resp.status_code == 404:
        return HealthResult(
            endpoint_id=endpoint_id,
            status="down",
            latency_ms=elapsed_ms,
            message=f"HTTP {resp.status_code}",
        )
    if elapsed_ms > _SLOW_MS:
        return HealthResult(
            endpoint_id=endpoint_id,
            status="slow",
            latency_ms=elapsed_ms,
            message="High latency",
        )
    message = (
        "" if resp.status_code < 400 else f"HTTP {resp.status_code}"
    )
    return HealthResult(
        endpoint_id=endpoint_id,
        status="ok",
        latency_ms=elapsed_ms,
        message=message,
    )


class HealthChecker:
    """Runs concurrent probes against the backend and content endpoints."""

    def __init__(self, client: BackendClient | None = None) -> None:
        self.client = client or BackendClient()
        self.endpoints: list[dict[str, str]] = [
            *Settings.BACKEND_ENDPOINTS,
            {"id": "slogans", "label": "Slogans", "url": Settings.SLOGANS_URL},
        ]

    async def check_all(self) -> list[HealthResult]:
        """Probe every endpoint concurrently."""
        tasks = [
            asyncio.to_thread(probe_endpoint, endpoint, self.client)
            for endpoint in self.endpoints
        ]
        results: list[HealthResult] = list(await asyncio.gather(*tasks))
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms) %s",
                r.endpoint_id,
                r.status,
                r.latency_ms,
                r.message,
            )
        return results
