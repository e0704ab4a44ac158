"""GitHub Actions environment handoff (env, state and output files)."""

import os
import uuid

from playground_manager.logging_config import get_logger

logger = get_logger(__name__)


def _format_entry(name: str, value: str) -> str:
    """Format one ``name=value`` file-command entry."""
    if "\n" not in value and "\r" not in value:
        return f"{name}={value}\n"
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    return f"{name}<<{delimiter}\n{value}\n{delimiter}\n"


def _append(file_var: str, name: str, value: str) -> bool:
    path = os.environ.get(file_var)
    if not path:
        logger.debug(f"{file_var} is not set, not recording {name}")
        return False
    with open(path, "a", encoding="utf-8") as f:
        f.write(_format_entry(name, value))
    return True


def export_variable(name: str, value: str) -> None:
    """Set an environment variable for this and all later workflow steps."""
    os.environ[name] = value
    _append("GITHUB_ENV", name, value)


def save_state(name: str, value: str) -> None:
    """Save a value for this action's post step."""
    _append("GITHUB_STATE", name, value)


def get_state(name: str) -> str | None:
    """Read a value saved with ``save_state`` in the main step."""
    return os.environ.get(f"STATE_{name}") or None


def set_output(name: str, value: str) -> None:
    """Publish a step output."""
    _append("GITHUB_OUTPUT", name, value)


def get_boolean_input(name: str) -> bool:
    """Read a boolean action input (``INPUT_<NAME>``); unset means False."""
    value = os.environ.get(f"INPUT_{name.upper()}", "").strip().lower()
    if value in ("", "false", "0", "no"):
        return False
    if value in ("true", "1", "yes"):
        return True
    raise ValueError(f"Input '{name}' must be true or false, got '{value}'")
