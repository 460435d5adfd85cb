"""Wisent — runs HTTP test cases and benchmarks against a service under test."""

from __future__ import annotations

import dataclasses
import functools
import logging
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor

import httpx

from wisent.framework.context import ExecutionContext
from wisent.framework.logger import DISCARD_LOGGER
from wisent.framework.testcontext import BenchmarkContext, TestContext
from wisent.harness.http import default_http_client
from wisent.lifecycle import managed_lifecycle
from wisent.types import (
    AssertResponse,
    BenchmarkCase,
    Case,
    PostRequest,
    PreRequest,
    ReadinessProbe,
    RequestWrapper,
    StartFunc,
)
from wisent.wrapper import direct


@dataclasses.dataclass
class Settings:
    """Construction-time configuration of a Wisent instance. See the with_* options."""

    base_url: str
    start: StartFunc | None = None
    readiness_probe: ReadinessProbe | None = None
    http_client: httpx.Client | None = None
    request_wrapper: RequestWrapper | None = None
    logger: logging.Logger | None = None


Option = Callable[[Settings], None]


def with_start_func(start: StartFunc) -> Option:
    def apply(s: Settings) -> None:
        s.start = start

    return apply


def with_readiness_probe(probe: ReadinessProbe) -> Option:
    def apply(s: Settings) -> None:
        s.readiness_probe = probe

    return apply


def with_http_client(client: httpx.Client) -> Option:
    def apply(s: Settings) -> None:
        s.http_client = client

    return apply


def with_request_wrapper(wrapper: RequestWrapper) -> Option:
    def apply(s: Settings) -> None:
        s.request_wrapper = wrapper

    return apply


def with_logger(logger: logging.Logger) -> Option:
    def apply(s: Settings) -> None:
        s.logger = logger

    return apply


class _IterationCounter:
    """Hands out iteration indices 0..total-1, each exactly once, to competing workers."""

    def __init__(self, total: int):
        self._total = total
        self._next = 0
        self._closed = False
        self._lock = threading.Lock()

    def take(self) -> int | None:
        with self._lock:
            if self._closed or self._next >= self._total:
                return None
            index = self._next
            self._next += 1
            return index

    def close(self) -> None:
        with self._lock:
            self._closed = True


class Wisent:
    """Configuration and runners for black-box HTTP tests and benchmarks.

    Every run (test, benchmark, benchmark_parallel) goes through the same lifecycle:
    start the app if a start function is configured, wait on the readiness probe if
    one is configured, execute the cases, then cancel the run's context and shut the
    app down, whatever happened in between.

    Usage:
        w = Wisent(
            "http://127.0.0.1:8080",
            with_start_func(app.start),
            with_readiness_probe(health_check_readiness_probe("/health", 5.0, 0.1)),
        )
        w.test(t, [
            Case(
                name="POST hello 200",
                request=w.new_request("POST", "/hello", '{"name": "World"}'),
                assert_response=lambda resp, err: (
                    w.assert_response_error(t, err),
                    w.assert_response_status_code(t, 200, resp),
                ),
            ),
        ])

    The configuration is read-only once constructed and may be shared by the worker
    threads of benchmark_parallel.
    """

    def __init__(self, base_url: str, *options: Option):
        settings = Settings(base_url=base_url)
        for option in options:
            option(settings)
        self.__owns_client = settings.http_client is None
        if settings.http_client is None:
            settings.http_client = default_http_client()
        if settings.logger is None:
            settings.logger = DISCARD_LOGGER
        self.__settings = settings

    # Properties

    @property
    def base_url(self) -> str:
        return self.__settings.base_url

    @property
    def start(self) -> StartFunc | None:
        return self.__settings.start

    @property
    def readiness_probe(self) -> ReadinessProbe | None:
        return self.__settings.readiness_probe

    @property
    def http_client(self) -> httpx.Client:
        return self.__settings.http_client

    @property
    def request_wrapper(self) -> RequestWrapper | None:
        return self.__settings.request_wrapper

    @property
    def logger(self) -> logging.Logger:
        return self.__settings.logger

    def close(self) -> None:
        """Closes the HTTP client if this instance created it."""
        if self.__owns_client:
            self.http_client.close()

    def __enter__(self) -> Wisent:
        return self

    def __exit__(self, *_) -> None:
        self.close()

    def new_request(self, method: str, url: str, body=None, **kwargs) -> httpx.Request:
        """Builds a request for base_url + url.

        Args:
            method: HTTP method (str)
            url: Path relative to base_url (str)
            body: Request content (str, bytes, byte iterator) or None
            kwargs: Passed to httpx.Request (headers, params, json, ...)
        """
        return httpx.Request(method, self.base_url + url, content=body, **kwargs)

    # Runners

    def test(self, t: TestContext, cases: Iterable[Case]) -> None:
        """Runs the cases one after the other, each as a named sub-test of t.

        A failing case does not stop the following ones; how failures are recorded is
        up to t.

        Raises:
            ReadinessError: If the service never became ready. No case runs.
        """
        self.logger.info("Starting tests")
        with managed_lifecycle(self.start, self.logger) as ctx:
            self._probe(ctx)
            for case in cases:
                t.run(case.name, functools.partial(self._run_case, case))
        self.logger.info("Testing done")

    def benchmark(self, b: BenchmarkContext, bm: BenchmarkCase) -> None:
        """Runs min(b.n, bm.max_iterations) iterations on the calling thread.

        Each iteration gets a new request from bm.request_factory. Failed assertions are
        recorded on b against their iteration and the loop carries on, unless
        b.stop_on_failure is set.

        Raises:
            ReadinessError: If the service never became ready. No iteration runs.
        """
        self.logger.info("Starting the benchmark")
        with managed_lifecycle(self.start, self.logger) as ctx:
            self._probe(ctx)
            total = self._iteration_count(b, bm)
            b.reset_timer()
            executed = 0
            try:
                for index in range(total):
                    if b.should_stop:
                        break
                    self._run_iteration(b, bm, index)
                    executed += 1
            finally:
                b.stop_timer(executed)
        self.logger.info("Benchmarking done")

    def benchmark_parallel(self, b: BenchmarkContext, bm: BenchmarkCase) -> None:
        """Like benchmark, with iterations spread over b.parallelism worker threads.

        Workers pull iteration indices from a shared counter until the quota is used up,
        so every iteration runs exactly once, in no particular order. An exception other
        than a failed assertion stops the distribution and is re-raised here once all
        workers have returned.

        Raises:
            ReadinessError: If the service never became ready. No iteration runs.
        """
        self.logger.info("Starting the parallel benchmark")
        with managed_lifecycle(self.start, self.logger) as ctx:
            self._probe(ctx)
            total = self._iteration_count(b, bm)
            counter = _IterationCounter(total)
            workers = max(1, min(b.parallelism, total))

            def worker() -> int:
                executed = 0
                while True:
                    index = counter.take()
                    if index is None:
                        return executed
                    if b.should_stop:
                        counter.close()
                        return executed
                    try:
                        self._run_iteration(b, bm, index)
                    except BaseException:
                        counter.close()
                        raise
                    executed += 1

            b.reset_timer()
            executed = 0
            errors = []
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="wisent-bench") as pool:
                futures = [pool.submit(worker) for _ in range(workers)]
                for future in futures:
                    try:
                        executed += future.result()
                    except Exception as exc:
                        errors.append(exc)
            b.stop_timer(executed)
            if errors:
                raise errors[0]
        self.logger.info("Benchmarking done")

    def _probe(self, ctx: ExecutionContext) -> None:
        if self.readiness_probe is not None:
            self.logger.info("Starting the readiness probe")
            self.readiness_probe(ctx, self)

    @staticmethod
    def _iteration_count(b: BenchmarkContext, bm: BenchmarkCase) -> int:
        if bm.max_iterations is None:
            return b.n
        return max(0, min(b.n, bm.max_iterations))

    def _run_case(self, case: Case) -> None:
        self.logger.info("Running the test %s", case.name)
        self._exchange(case.request, case.pre_request, case.post_request, case.assert_response)
        self.logger.info("Finished test %s", case.name)

    def _run_iteration(self, b: BenchmarkContext, bm: BenchmarkCase, index: int) -> None:
        self.logger.debug("Running benchmark iteration %d", index)
        request = bm.request_factory()
        try:
            self._exchange(request, bm.pre_request, bm.post_request, bm.assert_response)
        except AssertionError as exc:
            b.record_failure(index, exc)

    def _exchange(
        self,
        request: httpx.Request,
        pre_request: PreRequest | None,
        post_request: PostRequest | None,
        assert_response: AssertResponse,
    ) -> None:
        """Sends one request through the wrapper and hands the outcome to the hooks.

        Transport errors, and StreamConsumed from a wrapper re-sending a one-shot
        body, become the err argument. The response, if any, is closed afterwards on
        every path.
        """
        if pre_request is not None:
            pre_request(request)

        response = None
        error = None
        try:
            response = (self.request_wrapper or direct)(self, request)
        except (httpx.RequestError, httpx.StreamConsumed) as exc:
            self.logger.debug("Request to %s failed: %s", request.url, exc)
            error = exc

        try:
            if post_request is not None:
                post_request(response, error)
            assert_response(response, error)
        finally:
            if response is not None:
                response.close()

    # Assertion helpers. tb is anything with fail(message): a TestContext,
    # a BenchmarkContext or a unittest.TestCase.

    @staticmethod
    def _require_response(tb, resp: httpx.Response | None) -> bool:
        if resp is None:
            tb.fail("No response received")
            return False
        return True

    @staticmethod
    def _read_body(tb, resp: httpx.Response) -> bytes | None:
        try:
            return resp.read()
        except (httpx.HTTPError, httpx.StreamError) as exc:
            tb.fail(f"Error reading response body: {exc}")
            return None

    def assert_response_error(self, tb, err: Exception | None) -> None:
        """Fails tb if the request could not be performed."""
        if err is not None:
            tb.fail(f"Error performing the request: {err}")

    def assert_response_status_code(self, tb, expected: int, resp: httpx.Response | None) -> None:
        """Fails tb unless the response status code equals expected."""
        if not self._require_response(tb, resp):
            return
        if resp.status_code != expected:
            tb.fail(f"Incorrect status code, got: {resp.status_code}, want: {expected}")

    def assert_response_ok(self, tb, resp: httpx.Response | None) -> None:
        """Fails tb unless the response status is 2xx."""
        if not self._require_response(tb, resp):
            return
        if not resp.is_success:
            tb.fail(f"Expected 2xx, got {resp.status_code}")

    def assert_response_body(self, tb, expected: str, resp: httpx.Response | None) -> None:
        """Fails tb unless the decoded response body equals expected."""
        if not self._require_response(tb, resp) or self._read_body(tb, resp) is None:
            return
        if resp.text != expected:
            tb.fail(f"Body mismatch\nExpected: {expected}\nActual: {resp.text}")

    def assert_response_json(self, tb, expected, resp: httpx.Response | None) -> None:
        """Fails tb unless the response body is JSON equal to expected."""
        if not self._require_response(tb, resp) or self._read_body(tb, resp) is None:
            return
        try:
            actual = resp.json()
        except ValueError as exc:
            tb.fail(f"Response body is not JSON: {exc}")
            return
        if actual != expected:
            tb.fail(f"JSON body mismatch\nExpected: {expected}\nActual: {actual}")

    def assert_response_header(self, tb, name: str, expected: str, resp: httpx.Response | None) -> None:
        """Fails tb unless header name is present with value expected."""
        if not self._require_response(tb, resp):
            return
        actual = resp.headers.get(name)
        if actual != expected:
            tb.fail(f"Header {name} mismatch, got: {actual}, want: {expected}")

    def assert_response_time(self, tb, max_ms: float, resp: httpx.Response | None) -> None:
        """Fails tb if the response took longer than max_ms to arrive in full."""
        if not self._require_response(tb, resp) or self._read_body(tb, resp) is None:
            return
        try:
            elapsed_ms = resp.elapsed.total_seconds() * 1000
        except RuntimeError:
            # Responses that never went through a client stream carry no timing.
            tb.fail(f"Response time unavailable for {resp.url}")
            return
        if elapsed_ms > max_ms:
            tb.fail(f"Response time {elapsed_ms:.1f}ms exceeded {max_ms}ms for {resp.url}")
