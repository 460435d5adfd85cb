"""ASGIServerHarness — runs an ASGI app (FastAPI, Starlette, ...) in-process via uvicorn."""

from __future__ import annotations

import threading

import uvicorn

from wisent.framework import config
from wisent.framework.context import ExecutionContext
from wisent.framework.exception import AlreadyLaunchedError
from wisent.framework.logger import LOGGER
from wisent.types import ShutdownFunc, StartFunc


class ASGIServerHarness:
    """Serves an ASGI application with uvicorn on a background thread.

    Cheaper than ServerProcessHarness when the app is importable: no interpreter
    start-up, and the app shares the test process (fixtures, monkeypatching).

    Lifecycle: start() once, then the returned shutdown function sets should_exit
    and joins the server thread.
    """

    def __init__(
        self,
        app,
        host: str = "127.0.0.1",
        port: int = 8000,
        log_level: str = "warning",
        shutdown_grace_secs: float = config.DEFAULT_SHUTDOWN_GRACE_SECS,
    ):
        self._host = host
        self._port = port
        self._shutdown_grace_secs = shutdown_grace_secs
        self._server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level=log_level))
        self._thread: threading.Thread | None = None

    @property
    def base_url(self) -> str:
        return f"http://{self._host}:{self._port}"

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, ctx: ExecutionContext) -> ShutdownFunc:
        if self._thread is not None:
            raise AlreadyLaunchedError()
        LOGGER.info("Starting uvicorn on %s", self.base_url)
        self._thread = threading.Thread(
            target=self._server.run,
            name=f"uvicorn-{self._port}",
            daemon=True,
        )
        self._thread.start()
        return self.shutdown

    def shutdown(self, ctx: ExecutionContext) -> None:
        if not self.is_running:
            return
        self._server.should_exit = True
        self._thread.join(self._shutdown_grace_secs)
        if self._thread.is_alive():
            LOGGER.warning("uvicorn on %s did not stop in %.1fs, forcing exit", self.base_url, self._shutdown_grace_secs)
            self._server.force_exit = True
            self._thread.join()
        LOGGER.info("uvicorn on %s stopped", self.base_url)


def asgi_start(app, host: str = "127.0.0.1", port: int = 8000, **kwargs) -> StartFunc:
    """Returns a start function serving app with a fresh ASGIServerHarness per run."""

    def start(ctx: ExecutionContext) -> ShutdownFunc:
        return ASGIServerHarness(app, host=host, port=port, **kwargs).start(ctx)

    return start
