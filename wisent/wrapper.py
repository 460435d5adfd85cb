"""Request wrappers — strategies for sending a single request.

A wrapper is any callable (harness, request) -> httpx.Response that raises
httpx.TransportError when the request could not be sent. Runners hand that error
to the case's assert_response; HTTP error statuses are ordinary responses.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

import httpx

from wisent.framework import config
from wisent.types import RequestWrapper

if TYPE_CHECKING:
    from wisent.wisent import Wisent

# Seconds to sleep after the failed attempt with the given 0-based index.
Backoff = Callable[[int], float]


def direct(w: Wisent, request: httpx.Request) -> httpx.Response:
    """Sends the request once. The response body is left unread for the caller."""
    w.logger.info("Performing the request")
    return w.http_client.send(request, stream=True)


def linear_backoff(base_sleep: float) -> Backoff:
    """0, base, 2*base, ... — no delay before the first retry."""
    return lambda attempt: attempt * base_sleep


def exponential_backoff(base_sleep: float, cap: float = 30.0) -> Backoff:
    """base, 2*base, 4*base, ... capped at cap seconds."""
    return lambda attempt: min(cap, base_sleep * (2**attempt))


def retry(
    max_attempts: int = config.DEFAULT_MAX_ATTEMPTS,
    backoff: Backoff | None = None,
    inner: RequestWrapper = direct,
) -> RequestWrapper:
    """Creates a wrapper re-sending a request that failed at the transport level.

    Up to max_attempts sends are made. After a failed attempt the wrapper sleeps
    backoff(attempt) seconds, except after the last one, whose error is re-raised
    unchanged. Responses, whatever their status, are returned as-is.

    A re-sent request needs a replayable body (str or bytes). A generator
    body is gone after the first attempt and the retry fails with
    httpx.StreamConsumed.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
    backoff = backoff or linear_backoff(config.DEFAULT_BASE_SLEEP_SECS)

    def wrapper(w: Wisent, request: httpx.Request) -> httpx.Response:
        attempt = 0
        while True:
            try:
                return inner(w, request)
            except httpx.TransportError as exc:
                if attempt + 1 >= max_attempts:
                    w.logger.warning("Request failed after %d attempts: %s", max_attempts, exc)
                    raise
                sleep = backoff(attempt)
                w.logger.warning("Error performing request, sleeping %.3fs: %s", sleep, exc)
                time.sleep(sleep)
                attempt += 1

    return wrapper


def simple_retry(
    max_attempts: int = config.DEFAULT_MAX_ATTEMPTS,
    base_sleep: float = config.DEFAULT_BASE_SLEEP_SECS,
) -> RequestWrapper:
    """Creates a retrying wrapper with linear backoff.

    With base_sleep d, N failures followed by a success sleep d*(0+1+...+(N-1)) in total.
    """
    return retry(max_attempts, linear_backoff(base_sleep))


def with_headers(headers: Mapping[str, str], inner: RequestWrapper = direct) -> RequestWrapper:
    """Creates a wrapper setting headers (e.g. Authorization) on every request before inner sends it."""

    def wrapper(w: Wisent, request: httpx.Request) -> httpx.Response:
        request.headers.update(headers)
        return inner(w, request)

    return wrapper
