"""
test_report.py — Unit tests for wisent/report.py
"""

from rich.console import Console

from wisent import BenchmarkContext, RecordingTestContext
from wisent.report import THEME, _format_ns, print_benchmark_summary, print_test_summary


def render(printer, *args) -> str:
    out = Console(theme=THEME, width=160, color_system=None)
    with out.capture() as capture:
        printer(*args, out)
    return capture.get()


class TestFormatNs:
    def test_units(self):
        assert _format_ns(512) == "512ns"
        assert _format_ns(1_500) == "1.50µs"
        assert _format_ns(2_250_000) == "2.25ms"
        assert _format_ns(3_000_000_000) == "3.00s"


class TestTestSummary:
    def test_rows_and_counts(self):
        t = RecordingTestContext("hello suite")
        t.run("POST hello 200", lambda: None)
        t.run("POST hello 400", lambda: t.fail("Incorrect status code, got: 200, want: 400"))

        text = render(print_test_summary, t)
        assert "hello suite" in text
        assert "POST hello 200" in text
        assert "PASS" in text
        assert "FAIL" in text
        assert "Incorrect status code" in text
        assert "1 passed" in text
        assert "1 failed" in text


class TestBenchmarkSummary:
    def test_row_per_benchmark(self):
        ok = BenchmarkContext("bench ok", n=10, parallelism=2)
        ok.stop_timer(10)
        bad = BenchmarkContext("bench bad", n=4, parallelism=1)
        bad.record_failure(1, AssertionError("nope"))
        bad.stop_timer(4)

        text = render(print_benchmark_summary, [ok, bad])
        assert "Benchmarks" in text
        lines = {line.split()[1]: line.split() for line in text.splitlines() if line.strip().startswith("bench")}
        assert lines["ok"][2:4] == ["10", "2"]
        assert lines["ok"][-1] == "0"
        assert lines["bad"][2:4] == ["4", "1"]
        assert lines["bad"][-1] == "1"
