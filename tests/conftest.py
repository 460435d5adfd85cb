"""Root test conftest — shared fixtures for all test suites.

Unit test fixtures live in tests/unit/conftest.py; fixtures that start real
servers live in tests/components/hello/conftest.py. free_port is shared by both.
"""

import socket

import pytest

pytest_plugins = ["pytester", "wisent.pytest_plugin"]


@pytest.fixture
def free_port() -> int:
    """A TCP port on 127.0.0.1 that nothing is listening on right now."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
