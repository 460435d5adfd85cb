"""Test and benchmark contexts consumed by the Wisent runners.

The runners only need two capabilities from the surrounding test framework:
named sub-unit execution (`run(name, body)`) and failure reporting (`fail(message)`).
Benchmarks additionally need an iteration target and a resettable timer.

Adapters provided here:
  RecordingTestContext — standalone, records one SubResult per case
  UnittestTestContext  — delegates to unittest.TestCase.subTest / fail
  BenchmarkContext     — iteration target, timer and per-iteration failure log
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from wisent.framework import config
from wisent.framework.exception import AssertionFailure
from wisent.framework.logger import LOGGER


@dataclass
class SubResult:
    name: str
    passed: bool
    duration_ms: float
    message: str = ""


@dataclass
class IterationFailure:
    index: int
    message: str


class TestContext:
    """Abstract interface to the test framework's reporting primitives."""

    __test__ = False

    def run(self, name: str, body: Callable[[], None]) -> bool:
        """Runs body as an isolated, named sub-unit.

        Returns:
            True if the sub-unit passed (bool).
        """
        raise NotImplementedError

    def fail(self, message: str) -> None:
        """Reports a fatal failure of the current sub-unit. Does not return."""
        raise NotImplementedError


class RecordingTestContext(TestContext):
    """TestContext that runs sub-units in-process and records their outcome.

    A failing sub-unit (any AssertionError, including AssertionFailure raised by fail())
    is recorded and does not prevent the next sub-unit from running. Other exceptions
    propagate to the caller.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self.results: list[SubResult] = []

    def run(self, name: str, body: Callable[[], None]) -> bool:
        start = time.monotonic()
        try:
            body()
        except AssertionError as exc:
            elapsed_ms = (time.monotonic() - start) * 1000
            LOGGER.debug("Sub-test %s failed: %s", name, exc)
            self.results.append(SubResult(name, False, elapsed_ms, str(exc)))
            return False
        elapsed_ms = (time.monotonic() - start) * 1000
        self.results.append(SubResult(name, True, elapsed_ms))
        return True

    def fail(self, message: str) -> None:
        raise AssertionFailure(message)

    @property
    def failures(self) -> list[SubResult]:
        return [r for r in self.results if not r.passed]

    @property
    def failed(self) -> bool:
        return any(not r.passed for r in self.results)


class UnittestTestContext(TestContext):
    """TestContext backed by a unittest.TestCase.

    Sub-units map to subTest(), so a unittest result records each failing case
    separately and keeps running the remaining ones.
    """

    def __init__(self, test_case):
        self.__test_case = test_case

    @property
    def test_case(self):
        return self.__test_case

    def run(self, name: str, body: Callable[[], None]) -> bool:
        with self.__test_case.subTest(name):
            body()
            return True
        return False

    def fail(self, message: str) -> None:
        self.__test_case.fail(message)


class BenchmarkContext:
    """Iteration target, timer and failure log for one benchmark run.

    Properties:
        n: Target iteration count (int).
        parallelism: Worker count used by benchmark_parallel (int).
        stop_on_failure: If True, the runners stop pulling iterations after the first
                failed one (bool).
        iterations: Iterations executed, set by stop_timer() (int).
        elapsed_ns: Time between reset_timer() and stop_timer() (int).
    """

    def __init__(
        self,
        name: str = "",
        n: int = config.DEFAULT_ITERATIONS,
        parallelism: int | None = None,
        stop_on_failure: bool = False,
    ):
        if n < 0:
            raise ValueError(f"iteration count must not be negative, got {n}")
        self.name = name
        self.n = n
        self.parallelism = max(1, parallelism or config.DEFAULT_PARALLELISM)
        self.stop_on_failure = stop_on_failure
        self.iterations = 0
        self.elapsed_ns = 0
        self.__start_ns = time.perf_counter_ns()
        self.__failures: list[IterationFailure] = []
        self.__lock = threading.Lock()

    def reset_timer(self) -> None:
        """Zeroes the elapsed time and restarts the measurement."""
        self.elapsed_ns = 0
        self.__start_ns = time.perf_counter_ns()

    def stop_timer(self, iterations: int) -> None:
        """Stops the measurement, recording how many iterations ran."""
        self.elapsed_ns = time.perf_counter_ns() - self.__start_ns
        self.iterations = iterations

    @property
    def ns_per_op(self) -> float:
        if not self.iterations:
            return 0.0
        return self.elapsed_ns / self.iterations

    def fail(self, message: str) -> None:
        raise AssertionFailure(message)

    def record_failure(self, index: int, exc: BaseException) -> None:
        """Attributes a failed assertion to iteration index. Safe to call from workers."""
        with self.__lock:
            self.__failures.append(IterationFailure(index, str(exc)))
        LOGGER.debug("Benchmark %s iteration %d failed: %s", self.name, index, exc)

    @property
    def failures(self) -> list[IterationFailure]:
        with self.__lock:
            return sorted(self.__failures, key=lambda f: f.index)

    @property
    def failed(self) -> bool:
        with self.__lock:
            return bool(self.__failures)

    @property
    def should_stop(self) -> bool:
        return self.stop_on_failure and self.failed
