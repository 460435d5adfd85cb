"""ServerProcessHarness — language-agnostic start capability for a local server subprocess."""

from __future__ import annotations

import subprocess

from wisent.framework import config
from wisent.framework.context import ExecutionContext
from wisent.framework.harness import ProcessHarness
from wisent.framework.logger import LOGGER
from wisent.types import ShutdownFunc, StartFunc


class ServerProcessHarness(ProcessHarness):
    """Runs any HTTP server that binds a TCP port as a local subprocess.

    Works for any runtime; subclasses override ModifyArgs() / ModifyEnv() for
    runtime-specific flags. Output that is not sent to stdout_path / stderr_path
    is logged through LOGGER at debug level, so a chatty server never stalls on a
    full pipe.

    Adds on top of ProcessHarness:
      - start(): the Wisent start capability, launching the process and returning
        its shutdown function
      - base_url: http://host:port
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 8080,
        shutdown_grace_secs: float = config.DEFAULT_SHUTDOWN_GRACE_SECS,
        **kwargs,
    ):
        # binary_path and command_line_args come from the subclass/caller via kwargs
        kwargs.setdefault("log_output", True)
        super().__init__(**kwargs)
        self._host = host
        self._port = port
        self._shutdown_grace_secs = shutdown_grace_secs

    @property
    def base_url(self) -> str:
        return f"http://{self._host}:{self._port}"

    def start(self, ctx: ExecutionContext) -> ShutdownFunc:
        """Launches the server. Readiness is left to the configured probe."""
        LOGGER.info("Starting %s", self)
        self.Launch()
        return self.shutdown

    def shutdown(self, ctx: ExecutionContext) -> None:
        """Terminates the server, killing it if it outlives the grace period."""
        if not self.is_launched or self.is_finished:
            return
        self.Terminate()
        try:
            self.Wait(timeout=self._shutdown_grace_secs)
        except subprocess.TimeoutExpired:
            LOGGER.warning("%s ignored SIGTERM for %.1fs, killing", self, self._shutdown_grace_secs)
            self.Kill()
            self.Wait()
        LOGGER.info("%s exited with code %s", self, self.returncode)


def process_start(
    binary_path: str,
    command_line_args: list[str] | None = None,
    host: str = "127.0.0.1",
    port: int = 8080,
    **kwargs,
) -> StartFunc:
    """Returns a start function running binary_path as a server subprocess.

    Each call of the returned function launches a fresh ServerProcessHarness.

    Example:
        w = Wisent(
            "http://127.0.0.1:8000",
            with_start_func(process_start(sys.executable, ["-m", "http.server", "8000"], port=8000)),
            with_readiness_probe(health_check_readiness_probe("/", 5.0, 0.1)),
        )
    """

    def start(ctx: ExecutionContext) -> ShutdownFunc:
        harness = ServerProcessHarness(
            host=host,
            port=port,
            binary_path=binary_path,
            command_line_args=command_line_args,
            **kwargs,
        )
        return harness.start(ctx)

    return start
