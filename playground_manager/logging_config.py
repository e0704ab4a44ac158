"""Logging configuration for playground manager."""

import logging
import os
import sys
from pathlib import Path

# Workflow command prefixes understood by the GitHub Actions runner
ANNOTATION_PREFIXES = {
    logging.DEBUG: "::debug::",
    logging.WARNING: "::warning::",
    logging.ERROR: "::error::",
    logging.CRITICAL: "::error::",
}


class GitHubAnnotationFormatter(logging.Formatter):
    """Render records as GitHub Actions workflow commands."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        prefix = ANNOTATION_PREFIXES.get(record.levelno)
        if prefix is None:
            return message
        # Workflow commands are single-line
        escaped = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
        return f"{prefix}{escaped}"


def running_in_github_actions() -> bool:
    """Return True when executing inside a GitHub Actions runner."""
    return os.environ.get("GITHUB_ACTIONS", "").lower() == "true"


def setup_logging(level: str = "INFO", log_file: Path | None = None, verbose: bool = False) -> None:
    """Configure logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        verbose: If True, set level to DEBUG
    """
    if verbose:
        level = "DEBUG"

    console_level = getattr(logging, level.upper())

    # The file handler records DEBUG, so the root logger must let it through
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if log_file else console_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    if running_in_github_actions():
        console_handler.setFormatter(GitHubAnnotationFormatter("%(message)s"))
    else:
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
            root_logger.addHandler(file_handler)
        except OSError as e:
            logging.warning(f"Failed to create log file handler: {e}")

    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
