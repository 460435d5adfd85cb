"""Fixtures for the hello service component tests.

Serves hello_app in-process with uvicorn on a free local port.
Run standalone: pytest tests/components/hello/ -v
"""

import pytest

from hello_app import app
from wisent import (
    Wisent,
    health_check_readiness_probe,
    simple_retry,
    with_readiness_probe,
    with_request_wrapper,
    with_start_func,
)
from wisent.harness import asgi_start


@pytest.fixture
def hello_service(free_port):
    """Wisent wired to start hello_app, wait for /health and retry transport errors."""
    w = Wisent(
        f"http://127.0.0.1:{free_port}",
        with_start_func(asgi_start(app, port=free_port)),
        with_readiness_probe(health_check_readiness_probe("/health", 10.0, 0.05)),
        with_request_wrapper(simple_retry(5, 0.05)),
    )
    yield w
    w.close()
