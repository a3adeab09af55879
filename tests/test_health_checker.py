# tests/test_health_checker.py

"""Tests for the backend health checker service."""

import unittest
from unittest.mock import MagicMock, patch

from curl_cffi import CurlError

from src.services.health_checker import (
    HealthChecker,
    HealthResult,
    probe_endpoint,
)


def _client(status: int = 200) -> MagicMock:
    client = MagicMock()
    client.url = "https://db.example.co"
    client.headers.return_value = {"apikey": "anon"}
    resp = MagicMock()
    resp.status_code = status
    client.session.get.return_value = resp
    return client


class TestProbeEndpoint(unittest.TestCase):
    """Tests for the per-endpoint health probe function."""

    endpoint = {"id": "auth", "label": "Auth", "path": "/auth/v1/health"}

    def test_ok_status(self) -> None:
        client = _client(200)
        result = probe_endpoint(self.endpoint, client)
        self.assertEqual(result.status, "ok")
        self.assertEqual(result.message, "")
        self.assertEqual(
            client.session.get.call_args.args[0],
            "https://db.example.co/auth/v1/health",
        )

    def test_unauthorised_still_ok(self) -> None:
        """A 401 proves the service answers."""
        result = probe_endpoint(self.endpoint, _client(401))
        self.assertEqual(result.status, "ok")
        self.assertEqual(result.message, "HTTP 401")

    def test_down_on_server_error(self) -> None:
        result = probe_endpoint(self.endpoint, _client(503))
        self.assertEqual(result.status, "down")
        self.assertEqual(result.message, "HTTP 503")

    def test_down_on_not_found(self) -> None:
        self.assertEqual(
            probe_endpoint(self.endpoint, _client(404)).status, "down"
        )

    def test_down_on_exception(self) -> None:
        client = _client()
        client.session.get.side_effect = CurlError("dns failure")
        result = probe_endpoint(self.endpoint, client)
        self.assertEqual(result.status, "down")
        self.assertIn("dns failure", result.message)

    def test_absolute_url_endpoint(self) -> None:
        client = _client()
        probe_endpoint(
            {"id": "slogans", "url": "https://site/slogans.json"}, client
        )
        self.assertEqual(
            client.session.get.call_args.args[0],
            "https://site/slogans.json",
        )

    @patch("src.services.health_checker.time")
    def test_slow_status(self, mock_time: MagicMock) -> None:
        mock_time.monotonic.side_effect = [0.0, 4.0]
        result = probe_endpoint(self.endpoint, _client(200))
        self.assertEqual(result.status, "slow")
        self.assertEqual(result.latency_ms, 4000.0)


class TestHealthChecker(unittest.IsolatedAsyncioTestCase):
    """Tests for the HealthChecker orchestration."""

    def test_endpoints_include_slogans(self) -> None:
        checker = HealthChecker(client=_client())
        ids = [e["id"] for e in checker.endpoints]
        self.assertEqual(ids, ["rest", "auth", "storage", "slogans"])

    @patch("src.services.health_checker.probe_endpoint")
    async def test_check_all_probes_every_endpoint(
        self, mock_probe: MagicMock,
    ) -> None:
        mock_probe.side_effect = lambda endpoint, client: HealthResult(
            endpoint_id=endpoint["id"],
            status="ok",
            latency_ms=1.0,
            message="",
        )
        checker = HealthChecker(client=_client())
        results = await checker.check_all()
        self.assertEqual(
            [r.endpoint_id for r in results],
            ["rest", "auth", "storage", "slogans"],
        )
        self.assertEqual(mock_probe.call_count, 4)


if __name__ == "__main__":
    unittest.main()
