"""pytest integration — fixtures handing Wisent test and benchmark contexts to tests.

Enable it from a conftest.py:

    pytest_plugins = ["wisent.pytest_plugin"]

Fixtures:
    wisent_t — RecordingTestContext; the test errors at teardown if any case failed
    wisent_b — BenchmarkContext sized by --wisent-iterations / --wisent-parallelism;
               finished benchmarks are summarised at the end of the session
"""

from __future__ import annotations

import pytest
from rich.console import Console

from wisent.framework import config as defaults
from wisent.framework.testcontext import BenchmarkContext, RecordingTestContext
from wisent.report import THEME, print_benchmark_summary

_BENCHMARKS = pytest.StashKey[list]()


def pytest_addoption(parser):
    group = parser.getgroup("wisent", "wisent HTTP test harness")
    group.addoption(
        "--wisent-iterations",
        type=int,
        default=defaults.DEFAULT_ITERATIONS,
        dest="wisent_iterations",
        help="Target iteration count of each wisent benchmark (default: %(default)s)",
    )
    group.addoption(
        "--wisent-parallelism",
        type=int,
        default=None,
        dest="wisent_parallelism",
        help="Worker threads used by benchmark_parallel (default: CPU count)",
    )
    group.addoption(
        "--wisent-stop-on-failure",
        action="store_true",
        default=False,
        dest="wisent_stop_on_failure",
        help="Stop a benchmark at its first failed iteration",
    )


@pytest.fixture
def wisent_t(request):
    t = RecordingTestContext(request.node.name)
    yield t
    if t.failed:
        lines = [f"  {r.name}: {r.message}" for r in t.failures]
        pytest.fail(f"{len(lines)} of {len(t.results)} cases failed:\n" + "\n".join(lines), pytrace=False)


@pytest.fixture
def wisent_b(request):
    opts = request.config
    b = BenchmarkContext(
        name=request.node.name,
        n=opts.getoption("wisent_iterations", defaults.DEFAULT_ITERATIONS),
        parallelism=opts.getoption("wisent_parallelism", None),
        stop_on_failure=opts.getoption("wisent_stop_on_failure", False),
    )
    yield b
    if b.iterations:
        opts.stash.setdefault(_BENCHMARKS, []).append(b)
    if b.failed:
        first = b.failures[0]
        pytest.fail(
            f"{len(b.failures)} of {b.iterations} iterations failed, first at #{first.index}: {first.message}",
            pytrace=False,
        )


def pytest_terminal_summary(terminalreporter, exitstatus, config):
    benchmarks = config.stash.get(_BENCHMARKS, [])
    if not benchmarks:
        return
    terminalreporter.section("wisent benchmarks")
    out = Console(theme=THEME, highlight=False)
    with out.capture() as capture:
        print_benchmark_summary(benchmarks, out)
    terminalreporter.write(capture.get())
