"""Rich display helpers — pass/fail and timing tables for finished runs."""

from __future__ import annotations

from collections.abc import Iterable

from rich import box
from rich.console import Console
from rich.table import Table
from rich.theme import Theme

from wisent.framework.testcontext import BenchmarkContext, RecordingTestContext

THEME = Theme(
    {
        "wisent.ok": "#3d9e5a",
        "wisent.err": "#e05555",
        "wisent.muted": "#5A6278",
        "wisent.value": "bold white",
    }
)

console = Console(theme=THEME, highlight=False)


def _verdict(passed: bool) -> str:
    return "[wisent.ok]PASS[/wisent.ok]" if passed else "[wisent.err]FAIL[/wisent.err]"


def _format_ns(ns: float) -> str:
    if ns >= 1e9:
        return f"{ns / 1e9:.2f}s"
    if ns >= 1e6:
        return f"{ns / 1e6:.2f}ms"
    if ns >= 1e3:
        return f"{ns / 1e3:.2f}µs"
    return f"{ns:.0f}ns"


def results_table(t: RecordingTestContext) -> Table:
    """One row per recorded sub-test."""
    table = Table(title=t.name or None, box=box.SIMPLE_HEAD)
    table.add_column("Case", style="wisent.value")
    table.add_column("Result", justify="center")
    table.add_column("Duration", justify="right", style="wisent.muted")
    table.add_column("Message", style="wisent.muted", overflow="fold")
    for result in t.results:
        table.add_row(result.name, _verdict(result.passed), f"{result.duration_ms:.1f}ms", result.message)
    return table


def benchmark_table(benchmarks: Iterable[BenchmarkContext]) -> Table:
    """One row per benchmark: iterations, total time, time per op and failures."""
    table = Table(title="Benchmarks", box=box.SIMPLE_HEAD)
    table.add_column("Benchmark", style="wisent.value")
    table.add_column("Iterations", justify="right")
    table.add_column("Workers", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Per op", justify="right")
    table.add_column("Failures", justify="right")
    for b in benchmarks:
        failures = len(b.failures)
        table.add_row(
            b.name,
            str(b.iterations),
            str(b.parallelism),
            _format_ns(b.elapsed_ns),
            _format_ns(b.ns_per_op),
            f"[wisent.err]{failures}[/wisent.err]" if failures else "0",
        )
    return table


def print_test_summary(t: RecordingTestContext, out: Console | None = None) -> None:
    """Print the sub-test table followed by a passed/failed count."""
    out = out or console
    out.print(results_table(t))
    failed = len(t.failures)
    passed = len(t.results) - failed
    out.print(f"  [wisent.ok]{passed} passed[/wisent.ok]  [wisent.err]{failed} failed[/wisent.err]")


def print_benchmark_summary(benchmarks: Iterable[BenchmarkContext], out: Console | None = None) -> None:
    (out or console).print(benchmark_table(benchmarks))
