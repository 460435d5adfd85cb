"""
framework/config.py — Defaults used across the harness.

Everything here can be overridden per instance through the construction
options of Wisent or the arguments of the probe/wrapper factories.

Usage::

    from wisent.framework.config import DEFAULT_TIMEOUT_SECS
"""

import os

# ── Transport ──────────────────────────────────────────────────────────────────

DEFAULT_TIMEOUT_SECS: float = 3.0
DEFAULT_MAX_IDLE_CONNS_PER_HOST: int = 10
DEFAULT_KEEPALIVE_EXPIRY_SECS: float = 3.0

# ── Readiness ──────────────────────────────────────────────────────────────────

DEFAULT_PROBE_TIMEOUT_SECS: float = 5.0
DEFAULT_PROBE_INTERVAL_SECS: float = 0.1

# ── Retry ──────────────────────────────────────────────────────────────────────

DEFAULT_MAX_ATTEMPTS: int = 5
DEFAULT_BASE_SLEEP_SECS: float = 0.1

# ── Benchmarks ─────────────────────────────────────────────────────────────────

DEFAULT_ITERATIONS: int = 100
DEFAULT_PARALLELISM: int = os.cpu_count() or 1

# ── Process harness ────────────────────────────────────────────────────────────

DEFAULT_SHUTDOWN_GRACE_SECS: float = 10.0
