# wisent/framework/harness.py

"""Process harnesses used to run a service under test as a local subprocess."""

import errno
import io
import os
import socket
import subprocess
import threading

from wisent.framework import PLATFORM, WINDOWS
from wisent.framework.exception import AlreadyLaunchedError, NotLaunchedError, StartupError
from wisent.framework.logger import LOGGER

# Grace for reader threads to see EOF once the process has exited.
READER_JOIN_SECS = 5.0


class ProcessHarness:
    """Harness for a single process.

    A subclass has opportunities for modifying the command-line arguments and environment
    variables via the ModifyArgs and ModifyEnv calls, respectively.

    Properties:
        binary_path: Path to the executable (str).
        command_line_args: Command-line arguments to the process (list of str).
        env: Environment variables to append to the process' environment (dict of str:str).
        stdout_path: File name to capture the stdout (str) or None to use a pipe.
        stderr_path: File name to capture the stderr (str) or None to use a pipe.
        log_output: If True, pipes are drained line by line into LOGGER while the process
                runs instead of being collected by Wait() (bool).
        is_launched: If True, then Launch() has been called (bool).
        is_finished: If True, then Wait() has returned (bool).
        is_running: If True, then the process is running (bool).
    """

    def __init__(
        self,
        binary_path,
        command_line_args=None,
        env=None,
        cwd=None,
        stdout_path=None,
        stderr_path=None,
        log_output=False,
    ):
        """Initializes a ProcessHarness object.

        Args:
            binary_path: Path to the executable (str)
            command_line_args: Command-line arguments to the process (list of str)
            env: Dict containing additional environment variables (dict of str:str)
            cwd: Working directory of the process (str) or None to inherit
            stdout_path: File name to capture the stdout (str)
            stderr_path: File name to capture the stderr (str)
            log_output: Drain piped output into LOGGER (bool). Needed for long-running
                processes, which block once an unread pipe fills up.
        """
        self.__log_output = log_output
        self.__readers = []
        self.__binary_path = binary_path
        self.__command_line_args = list(command_line_args or [])
        self.__env = env
        self.__cwd = cwd
        self.__stdout_path = stdout_path
        self.__stderr_path = stderr_path
        self.__popen = None
        self.__is_finished = False
        self.__files = []
        self.__stdout = None
        self.__stderr = None
        self.returncode = None

    # Properties

    @property
    def binary_path(self):
        return self.__binary_path

    @property
    def command_line_args(self):
        return self.__command_line_args

    @property
    def env(self):
        return self.__env

    @property
    def stdout_path(self):
        return self.__stdout_path

    @property
    def stderr_path(self):
        return self.__stderr_path

    @property
    def log_output(self):
        return self.__log_output

    @property
    def pid(self):
        self._MustBeLaunched()
        return self.__popen.pid

    @property
    def stdout(self):
        self._MustBeLaunched()
        return self.__stdout

    @property
    def stderr(self):
        self._MustBeLaunched()
        return self.__stderr

    @property
    def is_launched(self):
        return self.__popen is not None

    @property
    def is_finished(self):
        return self.__is_finished

    @property
    def is_running(self):
        if self.__popen:
            return self.__popen.poll() is None
        return False

    # Virtual (optional)

    def ModifyArgs(self, args):
        """Subclass can override in order to manipulate the command-line arguments.

        Args:
            args: Default command-line arguments (list of str)

        Returns:
            Command-line arguments (list of str)
        """
        return args

    def ModifyEnv(self, env):
        """Subclass can override in order to manipulate the environment variables.

        Args:
            env: Additional environment variables (dict of str:str), or None.

        Returns:
            Full environment of the process (dict of str:str).
        """
        _env = os.environ.copy()
        _env.update(env or {})
        return {k: str(v) for k, v in _env.items()}

    def Launch(self):
        """Launches the subprocess.

        This method can only be called once per instance of this class.

        Raises:
            AlreadyLaunchedError: If the Launch method has already been called.
            StartupError: If the executable could not be started.
        """
        if self.is_launched:
            raise AlreadyLaunchedError()

        self.__is_finished = False
        stdout = self._FileOrPipe(self.__stdout_path, "w+")
        stderr = self._FileOrPipe(self.__stderr_path, "w+")

        args = [str(self.__binary_path)] + [str(a) for a in self.ModifyArgs(self.__command_line_args)]
        LOGGER.debug('Launching "%s"', " ".join(args))
        env = self.ModifyEnv(self.__env)

        try:
            self.__popen = subprocess.Popen(
                args,
                env=env,
                cwd=self.__cwd,
                stdin=subprocess.DEVNULL,
                stdout=stdout,
                stderr=stderr,
                close_fds=not PLATFORM.startswith(WINDOWS),
            )
        except OSError as exc:
            self._CloseFiles()
            raise StartupError(f"could not launch {self.__binary_path}: {exc}") from exc

        self.__stdout = self.__popen.stdout
        self.__stderr = self.__popen.stderr

        if self.__log_output:
            for name, pipe in (("stdout", self.__stdout), ("stderr", self.__stderr)):
                if pipe is not None:
                    reader = PipeLoggerThread(self, name, pipe)
                    reader.start()
                    self.__readers.append(reader)

    def Kill(self):
        """Send SIGKILL to the child.

        Raises:
            NotLaunchedError: If the Launch method has not been called.
        """
        self._MustBeLaunched()
        LOGGER.debug("Killing PID %d", self.__popen.pid)
        self.__Signal(self.__popen.kill)

    def Terminate(self):
        """Send SIGTERM to the child.

        Raises:
            NotLaunchedError: If the Launch method has not been called.
        """
        self._MustBeLaunched()
        LOGGER.debug("Terminating PID %d", self.__popen.pid)
        self.__Signal(self.__popen.terminate)

    def Wait(self, timeout=None):
        """Waits for the subprocess to die.

        Args:
            timeout: Seconds to wait (float), or None to wait forever.

        Raises:
            NotLaunchedError: If the Launch method has not been called.
            subprocess.TimeoutExpired: If the process is still running after timeout.
        """
        if self.is_finished:
            return
        self._MustBeLaunched()

        stdout_data = stderr_data = None
        try:
            if self.__readers:
                # The pipes belong to the reader threads; they stop at EOF.
                self.__popen.wait(timeout=timeout)
                while self.__readers:
                    self.__readers.pop().join(READER_JOIN_SECS)
            else:
                stdout_data, stderr_data = self.__popen.communicate(timeout=timeout)
        except OSError as exc:
            if exc.errno != errno.ECHILD:
                raise
            LOGGER.debug("Suppressed no child processes error.")
        self.returncode = self.__popen.returncode

        # The pipes are gone with the process; keep their contents readable.
        if stdout_data is not None:
            self.__stdout = io.StringIO(stdout_data.decode(errors="replace"))
        if stderr_data is not None:
            self.__stderr = io.StringIO(stderr_data.decode(errors="replace"))
            if stderr_data:
                LOGGER.debug("ProcessHarness [%s] stderr:\n%s", self, stderr_data)

        self._CloseFiles()
        self.__is_finished = True

    def GetExitCode(self):
        """Returns the exit code for the process after it has exited.

        Raises:
            NotLaunchedError: If the Launch method has not been called.
        """
        self._MustBeLaunched()
        return self.__popen.returncode

    def __str__(self):
        return " ".join(map(str, [self.__binary_path] + self.__command_line_args))

    def _MustBeLaunched(self):
        if not self.is_launched:
            raise NotLaunchedError()

    def __Signal(self, closure):
        if self.is_finished:
            # Already reaped; avoid signalling a recycled PID.
            return
        try:
            closure()
        except ProcessLookupError:
            LOGGER.debug("Process died before it could be signaled.")

    def _FileOrPipe(self, path, mode):
        """If path is specified, opens a file for it, else returns subprocess.PIPE."""
        if path:
            handle = open(path, mode)
            self.__files.append(handle)
            return handle
        return subprocess.PIPE

    def _CloseFiles(self):
        while self.__files:
            self.__files.pop().close()

    @staticmethod
    def IsListening(host="127.0.0.1", port=None, timeout=1.0):
        """Checks if the port is listening or not

        Args:
            host: host to check port on (str)
            port: port number to check (int)
            timeout: connect timeout in seconds (float)

        Returns:
            True if listening, False otherwise (bool)
        """
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.settimeout(timeout)
            try:
                return sock.connect_ex((host, int(port))) == 0
            except OSError:
                return False


class PipeLoggerThread(threading.Thread):
    """Thread which copies a process' output pipe into LOGGER, line by line."""

    def __init__(self, harness, name, pipe):
        """Initializes a PipeLoggerThread object.

        Args:
            harness: ProcessHarness object owning the pipe
            name: Stream name used in log records, "stdout" or "stderr" (str)
            pipe: Binary pipe to read until EOF
        """
        threading.Thread.__init__(self, name=f"{name}-{harness.pid}", daemon=True)
        self.__harness = harness
        self.__name = name
        self.__pipe = pipe

    def run(self):
        """Overrides the base class method to drain the pipe."""
        with self.__pipe:
            for line in iter(self.__pipe.readline, b""):
                LOGGER.debug("[%s] %s: %s", self.__harness, self.__name, line.decode(errors="replace").rstrip())
