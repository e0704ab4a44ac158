"""TiUP command surface: version probe, installation and playground control."""

import os
import shutil
from pathlib import Path

import requests

from playground_manager.exceptions import InstallError, SpawnError, VersionCheckError
from playground_manager.logging_config import get_logger
from playground_manager.models.cluster import ClusterConfig
from playground_manager.process import ProcessHandle, ProcessResult, ProcessRunner

logger = get_logger(__name__)

TIUP_INSTALL_URL = "https://tiup-mirrors.pingcap.com/install.sh"
TIUP_PATH_ENV = "TIUP_PATH"
DEFAULT_TIUP_BINARY = Path.home() / ".tiup" / "bin" / "tiup"
INSTALLED_PATH_PREFIX = "Installed path: "
READINESS_QUERY = "SELECT 1;\n"
BIND_ALL = "0.0.0.0"

# Seconds before a captured tiup run is killed
VERSION_TIMEOUT = 30
PROBE_TIMEOUT = 10
CLEAN_TIMEOUT = 120
INSTALL_SCRIPT_TIMEOUT = 300


class TiUP:
    """Wrapper around one resolved tiup executable."""

    def __init__(
        self,
        binary: str,
        runner: ProcessRunner | None = None,
        probe_timeout: float = PROBE_TIMEOUT,
    ):
        self.binary = str(binary)
        self.runner = runner or ProcessRunner()
        self.probe_timeout = probe_timeout

    def __repr__(self) -> str:
        return f"TiUP({self.binary!r})"

    @property
    def bin_dir(self) -> str:
        """Directory holding the tiup executable."""
        return os.path.dirname(self.binary)

    def version(self) -> str:
        """
        Ask tiup for its version.

        Returns:
            The leading token of ``tiup -v`` output

        Raises:
            VersionCheckError: If tiup exits non-zero or prints nothing
            SpawnError: If tiup cannot be executed at all
        """
        result = self.runner.run_captured(self.binary, ["-v"], timeout=VERSION_TIMEOUT)
        tokens = result.stdout.split()
        if not result.ok or not tokens:
            logger.error(f"{self.binary} -v failed with return code {result.returncode}")
            raise VersionCheckError(
                f"tiup at '{self.binary}' cannot report its version",
                result.stderr.strip() or None,
            )
        return tokens[0]

    def playground_args(self, config: ClusterConfig) -> list[str]:
        """Build the argument list for ``tiup playground``."""
        args = ["playground"]

        if config.version:
            args.append(config.version)

        args.extend(["--tag", config.tag])

        if config.without_monitor:
            args.append("--without-monitor")

        ignored = config.ignored_counts()
        if ignored:
            logger.warning(
                "Replica counts for "
                + ", ".join(f"{role}={count}" for role, count in ignored.items())
                + " are ignored; every role uses the db count. "
                "Pass --independent-counts to size each role separately."
            )

        for role, count in config.replica_counts().items():
            args.extend([f"--{role}", str(count)])

        args.extend(["--db.host", BIND_ALL, "--pd.host", BIND_ALL])
        return args

    def start_playground(self, config: ClusterConfig) -> ProcessHandle:
        """Launch a detached playground for ``config``."""
        handle = self.runner.run_detached(self.binary, self.playground_args(config))
        logger.info(f"Launched tiup playground '{config.tag}' (pid {handle.pid})")
        return handle

    def clean(self, cluster_id: str) -> ProcessResult:
        """Run ``tiup clean <id>`` and wait for it to exit."""
        return self.runner.run_captured(self.binary, ["clean", cluster_id], timeout=CLEAN_TIMEOUT)

    def is_ready(self, cluster_id: str) -> bool:
        """Return True if the cluster answers a trivial query."""
        result = self.runner.run_captured(
            self.binary, ["client", cluster_id], input=READINESS_QUERY, timeout=self.probe_timeout
        )
        return result.ok


def install_tiup(
    runner: ProcessRunner | None = None, url: str = TIUP_INSTALL_URL, timeout: int = 30
) -> str:
    """
    Download and run the official TiUP installer.

    Args:
        runner: Process runner used to execute the script
        url: Location of the installer script
        timeout: HTTP timeout in seconds

    Returns:
        Directory containing the installed tiup binary

    Raises:
        InstallError: If the download, the script or its output parsing fails
    """
    runner = runner or ProcessRunner()
    logger.info(f"Installing tiup from {url}")

    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Failed to fetch tiup installer: {e}")
        raise InstallError("Failed to fetch install.sh", str(e)) from e

    try:
        result = runner.run_captured(
            "bash", ["-s"], input=response.text, timeout=INSTALL_SCRIPT_TIMEOUT
        )
    except SpawnError as e:
        raise InstallError("Failed to install TiUP: cannot run bash", e.message) from e

    if not result.ok:
        logger.error(f"tiup installer exited with return code {result.returncode}")
        raise InstallError("Failed to install TiUP", result.stderr.strip() or None)

    for line in result.stdout.splitlines():
        if line.startswith(INSTALLED_PATH_PREFIX):
            installed = line[len(INSTALLED_PATH_PREFIX) :].strip()
            return os.path.dirname(installed)

    raise InstallError(
        "Failed to install TiUP: Cannot extract installed path",
        f"No line starting with '{INSTALLED_PATH_PREFIX}' in installer output",
    )


def candidate_binary() -> str:
    """Locate tiup from TIUP_PATH, then PATH, then the default install location."""
    bin_dir = os.environ.get(TIUP_PATH_ENV)
    if bin_dir:
        return os.path.join(bin_dir, "tiup")

    on_path = shutil.which("tiup")
    if on_path:
        return on_path

    return str(DEFAULT_TIUP_BINARY)


def resolve_tiup(
    explicit: str | None = None, install: bool = True, runner: ProcessRunner | None = None
) -> TiUP:
    """
    Resolve a usable tiup binary.

    An explicitly supplied path must work as is. Otherwise the discovered
    candidate is version-checked and, if unusable, tiup is installed.

    Raises:
        VersionCheckError: If no working tiup could be found
        SpawnError: If the tiup binary cannot be executed and installing is disabled
        InstallError: If installing tiup failed
    """
    runner = runner or ProcessRunner()

    if explicit:
        tiup = TiUP(explicit, runner)
        logger.info(f"Using tiup {tiup.version()} at {tiup.binary}")
        return tiup

    tiup = TiUP(candidate_binary(), runner)
    try:
        logger.info(f"Using tiup {tiup.version()} at {tiup.binary}")
        return tiup
    except (VersionCheckError, SpawnError) as e:
        if not install:
            raise
        logger.info(f"No usable tiup at {tiup.binary} ({e.message}), installing")

    tiup = TiUP(os.path.join(install_tiup(runner), "tiup"), runner)
    logger.info(f"Installed tiup at: {tiup.bin_dir}")
    logger.info(f"Using tiup: {tiup.version()}")
    return tiup
