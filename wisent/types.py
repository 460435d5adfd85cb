"""Callable signatures and case definitions used by Wisent."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from wisent.framework.context import ExecutionContext
    from wisent.wisent import Wisent

# Shuts down a service started by a StartFunc. Called exactly once per run.
ShutdownFunc = Callable[["ExecutionContext"], None]
# Starts the service under test in the background and returns its shutdown function.
StartFunc = Callable[["ExecutionContext"], ShutdownFunc]
# Blocks until the service is ready; raises a ReadinessError otherwise.
ReadinessProbe = Callable[["ExecutionContext", "Wisent"], None]
# Sends one request. Raises httpx.TransportError on network failure.
RequestWrapper = Callable[["Wisent", httpx.Request], httpx.Response]

AssertResponse = Callable[[httpx.Response | None, Exception | None], None]
PreRequest = Callable[[httpx.Request], None]
PostRequest = Callable[[httpx.Response | None, Exception | None], None]


@dataclass
class Case:
    """A single test case run by Wisent.test.

    The request is consumed when sent, so a Case is good for one run only.
    assert_response receives (response, error): exactly one of them is None.
    """

    name: str
    request: httpx.Request
    assert_response: AssertResponse
    pre_request: PreRequest | None = None
    post_request: PostRequest | None = None


@dataclass
class BenchmarkCase:
    """A benchmark run by Wisent.benchmark and Wisent.benchmark_parallel.

    request_factory is called once per iteration; it must return a new request each
    time since request bodies are single-use streams.
    """

    request_factory: Callable[[], httpx.Request]
    assert_response: AssertResponse
    pre_request: PreRequest | None = None
    post_request: PostRequest | None = None
    max_iterations: int | None = None


def repeat_request(request: httpx.Request) -> Callable[[], httpx.Request]:
    """Returns a factory producing independent copies of request, for BenchmarkCase.

    The body is read once up front; every copy gets its own stream over those bytes.
    """
    content = request.read()

    def factory() -> httpx.Request:
        return httpx.Request(request.method, request.url, headers=request.headers, content=content)

    return factory
