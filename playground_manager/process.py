"""Launching and awaiting external commands."""

import os
import signal
import subprocess
import warnings
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict

from playground_manager.exceptions import SpawnError
from playground_manager.logging_config import get_logger

logger = get_logger(__name__)


class ProcessResult(BaseModel):
    """Outcome of one captured subprocess execution."""

    model_config = ConfigDict(frozen=True)

    stdout: str
    stderr: str
    returncode: int

    @property
    def ok(self) -> bool:
        """True when the process exited with code zero."""
        return self.returncode == 0


@dataclass(frozen=True)
class ProcessHandle:
    """A detached child process that is never waited on."""

    pid: int
    command: list[str] = field(default_factory=list)


class ProcessRunner:
    """Spawns external commands either captured (launch-and-await) or detached
    (launch-and-release)."""

    def _spawn(self, argv: list[str], **kwargs) -> subprocess.Popen:
        logger.debug(f"Spawning: {' '.join(argv)}")
        try:
            proc = subprocess.Popen(argv, **kwargs)
        except OSError as e:
            logger.error(f"Failed to spawn {argv[0]}: {e}")
            raise SpawnError(
                f"Failed to spawn '{argv[0]}'",
                f"{e}\n\nCheck that the executable exists and is runnable.",
            ) from e

        if not proc.pid:
            logger.error(f"No process id allocated for {argv[0]}")
            raise SpawnError(f"Failed to spawn '{argv[0]}'", "No process id was allocated")

        return proc

    def run_captured(
        self,
        command: str,
        args: list[str] | None = None,
        input: str | None = None,
        timeout: float | None = None,
    ) -> ProcessResult:
        """
        Run a command to completion and capture its output.

        Both output streams are drained concurrently with the exit wait, so a
        chatty child cannot block on a full pipe.

        Args:
            command: Executable to run
            args: Command-line arguments
            input: Optional text written to the child's standard input
            timeout: Seconds to wait before killing the child. A killed child
                yields a non-zero ProcessResult.

        Returns:
            ProcessResult with the captured text and exit code

        Raises:
            SpawnError: If the process could not be created
        """
        argv = [command, *(args or [])]
        proc = self._spawn(
            argv,
            stdin=subprocess.PIPE if input is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            start_new_session=True,
        )
        try:
            stdout, stderr = proc.communicate(input=input, timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"{command} did not finish within {timeout}s, killing it")
            # tiup forwards to child components; kill the whole group
            try:
                os.killpg(proc.pid, signal.SIGKILL)
            except ProcessLookupError:
                pass
            stdout, stderr = proc.communicate()
            stderr = (stderr or "") + f"\nKilled after {timeout}s timeout\n"
            return ProcessResult(
                stdout=stdout or "", stderr=stderr, returncode=proc.returncode or -9
            )

        logger.debug(f"{command} exited with return code {proc.returncode}")
        return ProcessResult(stdout=stdout or "", stderr=stderr or "", returncode=proc.returncode)

    def run_detached(self, command: str, args: list[str] | None = None) -> ProcessHandle:
        """
        Start a command in its own session and return without waiting.

        The child keeps running after this process exits.

        Raises:
            SpawnError: If the process could not be created
        """
        argv = [command, *(args or [])]
        proc = self._spawn(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )

        logger.debug(f"Detached {command} as pid {proc.pid}")
        handle = ProcessHandle(pid=proc.pid, command=argv)

        # Released on purpose: the child is never waited on
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", ResourceWarning)
            del proc

        return handle
