"""Start capabilities and the transport provider."""

from wisent.harness.asgi import ASGIServerHarness, asgi_start
from wisent.harness.http import default_http_client, default_limits
from wisent.harness.server import ServerProcessHarness, process_start

__all__ = [
    "ASGIServerHarness",
    "ServerProcessHarness",
    "asgi_start",
    "default_http_client",
    "default_limits",
    "process_start",
]
