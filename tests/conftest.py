"""Pytest configuration and shared fixtures."""

import logging
from unittest.mock import Mock

import pytest
from hypothesis import Verbosity, settings

from playground_manager.process import ProcessHandle, ProcessResult, ProcessRunner
from playground_manager.tiup import TiUP

# Configure Hypothesis for property-based testing
settings.register_profile("default", max_examples=100, verbosity=Verbosity.normal)
settings.register_profile("ci", max_examples=1000, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=10, verbosity=Verbosity.verbose)

# Load the default profile
settings.load_profile("default")


def make_result(returncode: int = 0, stdout: str = "", stderr: str = "") -> ProcessResult:
    """Build a ProcessResult for stubbed runs."""
    return ProcessResult(stdout=stdout, stderr=stderr, returncode=returncode)


@pytest.fixture
def fake_runner():
    """ProcessRunner double that succeeds without spawning anything."""
    runner = Mock(spec=ProcessRunner)
    runner.run_captured.return_value = make_result()
    runner.run_detached.return_value = ProcessHandle(pid=4242)
    return runner


@pytest.fixture
def tiup(fake_runner):
    """TiUP wrapper backed by the fake runner."""
    return TiUP("/opt/tiup/bin/tiup", fake_runner)


@pytest.fixture
def sleeps():
    """Recording replacement for time.sleep."""
    calls = []
    return calls


@pytest.fixture
def github_files(tmp_path, monkeypatch):
    """Point the GitHub Actions file commands at temporary files."""
    # export_variable writes to os.environ; the undo removes it again
    monkeypatch.setenv("TIUP_PATH", "")
    paths = {}
    for var in ("GITHUB_ENV", "GITHUB_STATE", "GITHUB_OUTPUT"):
        path = tmp_path / var.lower()
        path.write_text("")
        monkeypatch.setenv(var, str(path))
        paths[var] = path
    return paths


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo setup_logging changes (made directly or by the CLI) after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers and not type(handler).__module__.startswith("_pytest"):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
