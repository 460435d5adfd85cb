"""
test_http.py — Unit tests for wisent/harness/http.py
"""

import httpx

from wisent import Wisent
from wisent.framework import config
from wisent.harness.http import default_http_client, default_limits


class TestDefaultHttpClient:
    def test_every_timeout_phase_is_bounded(self):
        with default_http_client() as client:
            timeout = client.timeout
        assert timeout.connect == config.DEFAULT_TIMEOUT_SECS
        assert timeout.read == config.DEFAULT_TIMEOUT_SECS
        assert timeout.write == config.DEFAULT_TIMEOUT_SECS
        assert timeout.pool == config.DEFAULT_TIMEOUT_SECS

    def test_custom_timeout(self):
        with default_http_client(timeout=0.5) as client:
            assert client.timeout.read == 0.5

    def test_limits(self):
        limits = default_limits()
        assert limits.max_keepalive_connections == 10
        assert limits.max_connections is None
        assert limits.keepalive_expiry == config.DEFAULT_KEEPALIVE_EXPIRY_SECS

    def test_kwargs_pass_through(self):
        with default_http_client(headers={"X-Suite": "unit"}) as client:
            assert client.headers["x-suite"] == "unit"

    def test_mock_transport(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(204))
        with default_http_client(transport=transport) as client:
            assert client.get("http://testserver/").status_code == 204


class TestClientOwnership:
    def test_default_client_closed_with_wisent(self):
        with Wisent("http://testserver") as w:
            client = w.http_client
            assert client.is_closed is False
        assert client.is_closed is True

    def test_injected_client_left_open(self, make_wisent):
        w = make_wisent()
        w.close()
        assert w.http_client.is_closed is False
