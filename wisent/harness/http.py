"""Transport provider — the pooled httpx.Client shared by every request of a run."""

from __future__ import annotations

import httpx

from wisent.framework import config


def default_limits() -> httpx.Limits:
    """Connection pool limits of the default client: at most 10 idle connections kept alive."""
    return httpx.Limits(
        max_connections=None,
        max_keepalive_connections=config.DEFAULT_MAX_IDLE_CONNS_PER_HOST,
        keepalive_expiry=config.DEFAULT_KEEPALIVE_EXPIRY_SECS,
    )


def default_http_client(
    timeout: float = config.DEFAULT_TIMEOUT_SECS,
    transport: httpx.BaseTransport | None = None,
    **kwargs,
) -> httpx.Client:
    """Returns an httpx.Client with bounded timeouts and a small keep-alive pool.

    Connect, read, write and pool-acquire timeouts all default to 3s so a wedged
    service fails a request instead of hanging the run. httpx.Client is safe to share
    between the worker threads of benchmark_parallel.

    Args:
        timeout: Timeout applied to every phase of a request, in seconds (float).
        transport: Optional transport, e.g. httpx.MockTransport in tests.
        kwargs: Passed through to httpx.Client.
    """
    kwargs.setdefault("limits", default_limits())
    return httpx.Client(
        timeout=httpx.Timeout(timeout),
        transport=transport,
        **kwargs,
    )
