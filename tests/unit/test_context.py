"""
test_context.py — Unit tests for wisent/framework/context.py and testcontext.py
"""

import threading
import time
import unittest

import pytest

from wisent.framework.context import ExecutionContext
from wisent.framework.exception import AssertionFailure, ContextCancelledError
from wisent.framework.testcontext import BenchmarkContext, RecordingTestContext, UnittestTestContext

# ── ExecutionContext ───────────────────────────────────────────────────────────


class TestExecutionContext:
    def test_new_context_is_active(self):
        ctx = ExecutionContext()
        assert ctx.cancelled is False
        ctx.check()

    def test_cancel_is_observed_by_check(self):
        """check() raises once the context is cancelled, carrying the reason."""
        ctx = ExecutionContext()
        ctx.cancel("bye")
        assert ctx.cancelled is True
        with pytest.raises(ContextCancelledError, match="bye"):
            ctx.check()

    def test_second_cancel_keeps_first_reason(self):
        ctx = ExecutionContext()
        ctx.cancel("first")
        ctx.cancel("second")
        assert ctx.reason == "first"

    def test_wait_times_out_when_not_cancelled(self):
        ctx = ExecutionContext()
        started = time.monotonic()
        assert ctx.wait(0.05) is False
        assert time.monotonic() - started >= 0.04

    def test_wait_wakes_up_on_cancel_from_another_thread(self):
        """A sleeping waiter returns early when another thread cancels."""
        ctx = ExecutionContext()
        timer = threading.Timer(0.05, ctx.cancel)
        timer.start()
        started = time.monotonic()
        assert ctx.wait(5.0) is True
        assert time.monotonic() - started < 1.0
        timer.join()


# ── RecordingTestContext ───────────────────────────────────────────────────────


class TestRecordingTestContext:
    def test_records_passing_and_failing_sub_tests_in_order(self):
        """A failing sub-test is recorded and the next one still runs."""
        t = RecordingTestContext("suite")

        def failing():
            t.fail("boom")

        assert t.run("first", failing) is False
        assert t.run("second", lambda: None) is True
        assert [(r.name, r.passed) for r in t.results] == [("first", False), ("second", True)]
        assert t.failures[0].message == "boom"
        assert t.failed is True

    def test_plain_assert_counts_as_failure(self):
        t = RecordingTestContext()

        def body():
            assert 1 == 2, "math"

        t.run("assert", body)
        assert t.failures[0].name == "assert"

    def test_other_exceptions_propagate(self):
        t = RecordingTestContext()

        def body():
            raise KeyError("missing")

        with pytest.raises(KeyError):
            t.run("error", body)

    def test_fail_raises_assertion_failure(self):
        with pytest.raises(AssertionFailure, match="nope"):
            RecordingTestContext().fail("nope")


# ── UnittestTestContext ────────────────────────────────────────────────────────


class TestUnittestTestContext:
    def test_sub_tests_are_reported_individually(self):
        """Each failing sub-unit lands in the unittest result; later sub-units still run."""
        ran = []

        class _Case(unittest.TestCase):
            def runTest(self):
                t = UnittestTestContext(self)
                t.run("bad", lambda: t.fail("first failure"))
                t.run("good", lambda: ran.append("good"))
                t.run("bad again", lambda: t.fail("second failure"))

        result = unittest.TestResult()
        _Case().run(result)

        assert ran == ["good"]
        assert len(result.failures) == 2
        messages = [text for _, text in result.failures]
        assert "first failure" in messages[0]
        assert "second failure" in messages[1]


# ── BenchmarkContext ───────────────────────────────────────────────────────────


class TestBenchmarkContext:
    def test_timer_measures_between_reset_and_stop(self):
        b = BenchmarkContext(n=10)
        time.sleep(0.02)
        b.reset_timer()
        b.stop_timer(10)
        assert b.iterations == 10
        assert b.elapsed_ns < 20_000_000
        assert b.ns_per_op == b.elapsed_ns / 10

    def test_ns_per_op_is_zero_without_iterations(self):
        b = BenchmarkContext(n=0)
        b.stop_timer(0)
        assert b.ns_per_op == 0.0

    def test_negative_iteration_count_is_rejected(self):
        with pytest.raises(ValueError):
            BenchmarkContext(n=-1)

    def test_failures_are_sorted_by_iteration(self):
        b = BenchmarkContext()
        b.record_failure(7, AssertionFailure("late"))
        b.record_failure(2, AssertionFailure("early"))
        assert [(f.index, f.message) for f in b.failures] == [(2, "early"), (7, "late")]

    def test_should_stop_only_with_stop_on_failure(self):
        lenient = BenchmarkContext()
        strict = BenchmarkContext(stop_on_failure=True)
        for b in (lenient, strict):
            b.record_failure(0, AssertionFailure("x"))
        assert lenient.should_stop is False
        assert strict.should_stop is True

    def test_parallelism_is_at_least_one(self):
        assert BenchmarkContext(parallelism=0).parallelism >= 1
        assert BenchmarkContext(parallelism=3).parallelism == 3
