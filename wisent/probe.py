"""Readiness probes — block until the service under test can take requests."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import httpx

from wisent.framework import config
from wisent.framework.context import ExecutionContext
from wisent.framework.exception import ReadinessCancelledError, ReadinessTimeoutError
from wisent.framework.harness import ProcessHarness
from wisent.types import ReadinessProbe

if TYPE_CHECKING:
    from wisent.wisent import Wisent


def _retry_or_give_up(ctx: ExecutionContext, target: str, started: float, timeout: float, interval: float) -> None:
    """Sleeps before the next attempt, or raises if the probe must stop."""
    if ctx.cancelled:
        raise ReadinessCancelledError(f"readiness probe for {target} cancelled")
    if time.monotonic() - started >= timeout:
        raise ReadinessTimeoutError(target, timeout)
    if ctx.wait(interval):
        raise ReadinessCancelledError(f"readiness probe for {target} cancelled")


def health_check_readiness_probe(
    url: str,
    timeout: float = config.DEFAULT_PROBE_TIMEOUT_SECS,
    interval: float = config.DEFAULT_PROBE_INTERVAL_SECS,
) -> ReadinessProbe:
    """Creates a probe polling GET base_url + url until it answers 200 OK.

    Every attempt is a fresh request through the harness' client. Transport errors and
    any status other than 200 mean "not ready yet". Between attempts the probe checks,
    in order, for cancellation (ReadinessCancelledError) and for the elapsed time
    reaching timeout (ReadinessTimeoutError), then sleeps interval seconds. There is
    no attempt cap.

    Args:
        url: Health endpoint path, relative to the harness base URL (str).
        timeout: Seconds after which the probe gives up (float).
        interval: Seconds to sleep between attempts (float).
    """

    def probe(ctx: ExecutionContext, w: Wisent) -> None:
        target = w.base_url + url
        started = time.monotonic()
        attempt = 0
        while True:
            attempt += 1
            w.logger.info("Checking readiness of %s (attempt %d)", target, attempt)
            request = httpx.Request("GET", target)
            try:
                response = w.http_client.send(request)
            except httpx.TransportError as exc:
                w.logger.debug("Readiness request failed: %s", exc)
            else:
                response.close()
                if response.status_code == httpx.codes.OK:
                    w.logger.info("%s is ready", target)
                    return
                w.logger.debug("Readiness check got status %d", response.status_code)
            _retry_or_give_up(ctx, target, started, timeout, interval)

    return probe


def tcp_readiness_probe(
    host: str,
    port: int,
    timeout: float = config.DEFAULT_PROBE_TIMEOUT_SECS,
    interval: float = config.DEFAULT_PROBE_INTERVAL_SECS,
) -> ReadinessProbe:
    """Creates a probe waiting for host:port to accept TCP connections.

    For services without a health endpoint. Same timeout and cancellation rules as
    health_check_readiness_probe.
    """

    def probe(ctx: ExecutionContext, w: Wisent) -> None:
        target = f"tcp://{host}:{port}"
        started = time.monotonic()
        while True:
            w.logger.info("Checking readiness of %s", target)
            if ProcessHarness.IsListening(host=host, port=port, timeout=min(max(interval, 0.1), 1.0)):
                w.logger.info("%s is ready", target)
                return
            _retry_or_give_up(ctx, target, started, timeout, interval)

    return probe
