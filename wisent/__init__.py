"""wisent — black-box HTTP tests and benchmarks against a service under test."""

from wisent.framework.context import ExecutionContext
from wisent.framework.exception import (
    AssertionFailure,
    ContextCancelledError,
    Error,
    ReadinessCancelledError,
    ReadinessError,
    ReadinessTimeoutError,
    StartupError,
)
from wisent.framework.testcontext import BenchmarkContext, RecordingTestContext, TestContext, UnittestTestContext
from wisent.harness.http import default_http_client
from wisent.probe import health_check_readiness_probe, tcp_readiness_probe
from wisent.types import BenchmarkCase, Case, repeat_request
from wisent.wisent import (
    Wisent,
    with_http_client,
    with_logger,
    with_readiness_probe,
    with_request_wrapper,
    with_start_func,
)
from wisent.wrapper import direct, exponential_backoff, linear_backoff, retry, simple_retry, with_headers

__version__ = "0.1.0"

__all__ = [
    "AssertionFailure",
    "BenchmarkCase",
    "BenchmarkContext",
    "Case",
    "ContextCancelledError",
    "Error",
    "ExecutionContext",
    "ReadinessCancelledError",
    "ReadinessError",
    "ReadinessTimeoutError",
    "RecordingTestContext",
    "StartupError",
    "TestContext",
    "UnittestTestContext",
    "Wisent",
    "default_http_client",
    "direct",
    "exponential_backoff",
    "health_check_readiness_probe",
    "linear_backoff",
    "repeat_request",
    "retry",
    "simple_retry",
    "tcp_readiness_probe",
    "with_headers",
    "with_http_client",
    "with_logger",
    "with_readiness_probe",
    "with_request_wrapper",
    "with_start_func",
]
