"""Unit tests for the process runner."""

import os
import signal
import sys
import time
import warnings
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from playground_manager.exceptions import SpawnError
from playground_manager.process import ProcessResult, ProcessRunner

runner = ProcessRunner()


def test_run_captured_collects_both_streams():
    """Stdout, stderr and the exit code are returned together."""
    result = runner.run_captured(
        sys.executable,
        ["-c", "import sys; print('out'); print('err', file=sys.stderr); sys.exit(3)"],
    )

    assert result.stdout.strip() == "out"
    assert result.stderr.strip() == "err"
    assert result.returncode == 3
    assert not result.ok


def test_run_captured_drains_large_output_on_both_streams():
    """Output larger than a pipe buffer on both streams does not deadlock."""
    script = (
        "import sys\n"
        "for _ in range(2000):\n"
        "    sys.stderr.write('e' * 100 + '\\n')\n"
        "    sys.stdout.write('o' * 100 + '\\n')\n"
    )
    result = runner.run_captured(sys.executable, ["-c", script])

    assert result.ok
    assert len(result.stdout.splitlines()) == 2000
    assert len(result.stderr.splitlines()) == 2000


def test_run_captured_feeds_stdin():
    """Input text reaches the child's standard input."""
    result = runner.run_captured(
        sys.executable, ["-c", "import sys; print(sys.stdin.read().upper())"], input="select 1;"
    )

    assert result.ok
    assert result.stdout.strip() == "SELECT 1;"


def test_run_captured_missing_binary_raises_spawn_error():
    """A missing executable surfaces as SpawnError."""
    with pytest.raises(SpawnError) as exc_info:
        runner.run_captured("/nonexistent/tiup", ["-v"])

    assert "/nonexistent/tiup" in exc_info.value.message


def test_run_detached_missing_binary_raises_spawn_error():
    """Detached launches fail the same way."""
    with pytest.raises(SpawnError):
        runner.run_detached("/nonexistent/tiup", ["playground"])


def test_missing_pid_raises_spawn_error():
    """A process without a pid is treated as a spawn failure."""
    with patch("playground_manager.process.subprocess.Popen") as mock_popen:
        mock_popen.return_value.pid = None

        with pytest.raises(SpawnError, match="No process id"):
            runner.run_detached("tiup", ["playground"])


def test_run_detached_returns_immediately_in_new_session():
    """Detached children run in their own session and are not awaited."""
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        started = time.monotonic()
        handle = runner.run_detached(sys.executable, ["-c", "import time; time.sleep(5)"])
        elapsed = time.monotonic() - started

    try:
        assert handle.pid > 0
        assert handle.command[0] == sys.executable
        assert elapsed < 1.5
        assert os.getsid(handle.pid) == handle.pid
        os.kill(handle.pid, 0)
        assert not [w for w in caught if issubclass(w.category, ResourceWarning)]
    finally:
        os.kill(handle.pid, signal.SIGKILL)


def test_run_captured_kills_child_after_timeout():
    """A child that outlives its timeout is killed and reported as failed."""
    script = "import sys, time; print('started', flush=True); time.sleep(30)"

    started = time.monotonic()
    result = runner.run_captured(sys.executable, ["-c", script], timeout=0.5)
    elapsed = time.monotonic() - started

    assert not result.ok
    assert result.stdout.strip() == "started"
    assert "timeout" in result.stderr
    assert elapsed < 10


def test_run_captured_within_timeout_is_unaffected():
    """A child finishing before its timeout keeps its exit code."""
    result = runner.run_captured(sys.executable, ["-c", "print('ok')"], timeout=30)

    assert result.ok
    assert result.stdout.strip() == "ok"


def test_process_result_is_immutable():
    """ProcessResult cannot be changed after construction."""
    result = ProcessResult(stdout="", stderr="", returncode=0)

    with pytest.raises(ValidationError):
        result.returncode = 1
