"""
conftest.py — Fixtures for the unit tests.

No network: every Wisent built here talks to an httpx.MockTransport.
"""

import json

import httpx
import pytest

from wisent import Wisent, with_http_client
from wisent.harness.http import default_http_client

BASE_URL = "http://testserver"


def hello_handler(request: httpx.Request) -> httpx.Response:
    """In-memory stand-in for the hello service: /health and POST /hello."""
    if request.url.path == "/health":
        return httpx.Response(200, json={"status": "ok"})
    if request.url.path == "/hello" and request.method == "POST":
        try:
            name = json.loads(request.content)["name"]
        except (ValueError, KeyError, TypeError):
            return httpx.Response(400, text="Invalid request body")
        return httpx.Response(200, text=f"Hello, {name}!")
    return httpx.Response(404, text="not found")


@pytest.fixture
def make_client():
    """Factory for clients routed to a handler; closed at teardown."""
    clients = []

    def factory(handler) -> httpx.Client:
        client = default_http_client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()


@pytest.fixture
def make_wisent(make_client):
    """Factory for Wisent instances against BASE_URL, defaulting to hello_handler."""

    def factory(*options, handler=hello_handler) -> Wisent:
        return Wisent(BASE_URL, with_http_client(make_client(handler)), *options)

    return factory


@pytest.fixture
def hello_wisent(make_wisent) -> Wisent:
    return make_wisent()
