"""Unit tests for the GitHub Actions environment handoff."""

import os

import pytest

from playground_manager import pipeline


def test_export_variable_writes_env_file(github_files, monkeypatch):
    """Exported variables land in GITHUB_ENV and in this process."""
    monkeypatch.delenv("TIUP_PATH", raising=False)

    pipeline.export_variable("TIUP_PATH", "/home/runner/.tiup/bin")

    assert github_files["GITHUB_ENV"].read_text() == "TIUP_PATH=/home/runner/.tiup/bin\n"
    assert os.environ["TIUP_PATH"] == "/home/runner/.tiup/bin"


def test_save_state_and_output(github_files):
    """State and outputs are appended to their own files."""
    pipeline.save_state("cluster-id", "abcd1234")
    pipeline.set_output("cluster-id", "abcd1234")
    pipeline.set_output("tiup-path", "/opt/tiup")

    assert github_files["GITHUB_STATE"].read_text() == "cluster-id=abcd1234\n"
    assert github_files["GITHUB_OUTPUT"].read_text() == (
        "cluster-id=abcd1234\ntiup-path=/opt/tiup\n"
    )


def test_multiline_values_use_delimiter(github_files):
    """Values with newlines use the heredoc form."""
    pipeline.set_output("log", "line one\nline two")

    lines = github_files["GITHUB_OUTPUT"].read_text().splitlines()
    assert lines[0].startswith("log<<ghadelimiter_")
    delimiter = lines[0].split("<<", 1)[1]
    assert lines[1:] == ["line one", "line two", delimiter]


def test_missing_files_are_ignored(monkeypatch, tmp_path):
    """Outside of GitHub Actions nothing is written."""
    for var in ("GITHUB_ENV", "GITHUB_STATE", "GITHUB_OUTPUT"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)

    pipeline.save_state("cluster-id", "abcd1234")
    pipeline.set_output("cluster-id", "abcd1234")
    pipeline.export_variable("PLAYGROUND_TEST_VAR", "1")

    assert os.environ["PLAYGROUND_TEST_VAR"] == "1"
    assert list(tmp_path.iterdir()) == []
    monkeypatch.delenv("PLAYGROUND_TEST_VAR")


def test_get_state(monkeypatch):
    """Saved state is read back from STATE_<name>."""
    monkeypatch.setenv("STATE_cluster-id", "abcd1234")

    assert pipeline.get_state("cluster-id") == "abcd1234"
    assert pipeline.get_state("missing") is None


@pytest.mark.parametrize(
    "raw,expected",
    [("true", True), ("True", True), ("1", True), ("false", False), ("", False)],
)
def test_get_boolean_input(monkeypatch, raw, expected):
    """Boolean inputs accept the usual spellings; unset is False."""
    monkeypatch.setenv("INPUT_WITHOUT-MONITOR", raw)

    assert pipeline.get_boolean_input("without-monitor") is expected


def test_get_boolean_input_rejects_garbage(monkeypatch):
    """Unrecognized boolean inputs are an error."""
    monkeypatch.setenv("INPUT_WITHOUT-MONITOR", "maybe")

    with pytest.raises(ValueError, match="without-monitor"):
        pipeline.get_boolean_input("without-monitor")
