"""Lifecycle coordinator — owns the execution context and the service shutdown."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from wisent.framework.context import ExecutionContext
from wisent.types import StartFunc


@contextmanager
def managed_lifecycle(start: StartFunc | None, logger: logging.Logger) -> Iterator[ExecutionContext]:
    """Yields a fresh ExecutionContext with the service under test running.

    If start is given it is called with the context and its shutdown function is
    invoked exactly once when the block exits, however it exits. The context is
    cancelled first; shutdown receives a new, live context so it can still wait on
    a graceful stop. Without start the service is assumed to be managed elsewhere
    and exiting only cancels the context.
    """
    ctx = ExecutionContext()
    if start is None:
        try:
            yield ctx
        finally:
            ctx.cancel("run finished")
        return

    logger.info("Starting the app")
    try:
        shutdown = start(ctx)
    except BaseException:
        ctx.cancel("start failed")
        raise

    try:
        yield ctx
    finally:
        logger.info("Shutting down")
        ctx.cancel("run finished")
        shutdown(ExecutionContext())
