"""
test_wrapper.py — Unit tests for wisent/wrapper.py

Retries only transport-level failures; sleeps follow the configured backoff.
"""

import httpx
import pytest

import wisent.wrapper as wrapper
from wisent.wrapper import direct, exponential_backoff, linear_backoff, retry, simple_retry, with_headers


class FlakyHandler:
    """Raises ConnectError for the first `failures` requests, then answers 200."""

    def __init__(self, failures: int):
        self.failures = failures
        self.calls = 0

    def __call__(self, request):
        self.calls += 1
        if self.calls <= self.failures:
            raise httpx.ConnectError(f"refused #{self.calls}", request=request)
        return httpx.Response(200, text="ok")


@pytest.fixture
def sleeps(monkeypatch):
    """Records retry sleeps instead of sleeping."""
    recorded = []
    monkeypatch.setattr(wrapper.time, "sleep", recorded.append)
    return recorded


class TestDirect:
    def test_sends_once(self, hello_wisent):
        request = hello_wisent.new_request("POST", "/hello", '{"name": "direct"}')
        response = direct(hello_wisent, request)
        try:
            assert response.status_code == 200
            assert response.read() == b"Hello, direct!"
        finally:
            response.close()


class TestSimpleRetry:
    @pytest.mark.parametrize("failures", [1, 2, 4])
    def test_linear_sleeps_before_success(self, make_wisent, sleeps, failures):
        """N failures then success sleep d*(0+1+...+(N-1))."""
        handler = FlakyHandler(failures)
        w = make_wisent(handler=handler)
        response = simple_retry(5, 0.1)(w, w.new_request("GET", "/"))
        response.close()

        assert response.status_code == 200
        assert handler.calls == failures + 1
        assert sleeps == pytest.approx([0.1 * i for i in range(failures)])

    def test_last_error_is_raised_after_all_attempts(self, make_wisent, sleeps):
        handler = FlakyHandler(failures=100)
        w = make_wisent(handler=handler)
        with pytest.raises(httpx.ConnectError, match="refused #5"):
            simple_retry(5, 0.1)(w, w.new_request("GET", "/"))
        assert handler.calls == 5
        assert sleeps == pytest.approx([0.0, 0.1, 0.2, 0.3])

    def test_max_attempts_is_honoured(self, make_wisent, sleeps):
        handler = FlakyHandler(failures=100)
        w = make_wisent(handler=handler)
        with pytest.raises(httpx.ConnectError, match="refused #3"):
            simple_retry(3, 0.0)(w, w.new_request("GET", "/"))
        assert handler.calls == 3

    def test_http_error_status_is_not_retried(self, make_wisent, sleeps):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        w = make_wisent(handler=handler)
        response = simple_retry(5, 0.1)(w, w.new_request("GET", "/"))
        response.close()
        assert response.status_code == 503
        assert len(calls) == 1
        assert sleeps == []

    def test_request_body_is_resent_on_retry(self, make_wisent, sleeps):
        bodies = []

        def handler(request):
            bodies.append(request.content)
            if len(bodies) == 1:
                raise httpx.ReadError("reset", request=request)
            return httpx.Response(200)

        w = make_wisent(handler=handler)
        simple_retry(3, 0.0)(w, w.new_request("POST", "/hello", b'{"name": "again"}')).close()
        assert bodies == [b'{"name": "again"}', b'{"name": "again"}']


class TestRetry:
    def test_zero_attempts_is_rejected(self):
        with pytest.raises(ValueError):
            retry(0)

    def test_custom_backoff_curve(self, make_wisent, sleeps):
        w = make_wisent(handler=FlakyHandler(3))
        retry(4, exponential_backoff(0.5, cap=1.5))(w, w.new_request("GET", "/")).close()
        assert sleeps == [0.5, 1.0, 1.5]

    def test_backoff_curves(self):
        assert [linear_backoff(2)(i) for i in range(3)] == [0, 2, 4]
        assert [exponential_backoff(1, cap=5)(i) for i in range(4)] == [1, 2, 4, 5]


class TestWithHeaders:
    def test_headers_are_added_before_sending(self, make_wisent):
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200)

        w = make_wisent(handler=handler)
        with_headers({"Authorization": "Bearer xyz"})(w, w.new_request("GET", "/")).close()
        assert seen["authorization"] == "Bearer xyz"

    def test_composes_with_retry(self, make_wisent, sleeps):
        handler = FlakyHandler(1)
        w = make_wisent(handler=handler)
        send = with_headers({"X-Run": "1"}, inner=simple_retry(2, 0.0))
        send(w, w.new_request("GET", "/")).close()
        assert handler.calls == 2
