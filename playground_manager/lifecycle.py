"""Provisioning and reclaiming playground clusters."""

import time
from collections.abc import Callable

from playground_manager.exceptions import ProvisionTimeout, ReclaimTimeout
from playground_manager.logging_config import get_logger
from playground_manager.models.cluster import ClusterConfig
from playground_manager.poller import poll_until
from playground_manager.tiup import TiUP

logger = get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 60
DEFAULT_INTERVAL_MS = 1000


class Provisioner:
    """Starts a playground and waits until it answers queries."""

    def __init__(
        self,
        tiup: TiUP,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.tiup = tiup
        self.max_attempts = max_attempts
        self.interval_ms = interval_ms
        self.sleep = sleep

    def provision(self, config: ClusterConfig) -> str:
        """
        Bring up one playground cluster.

        Args:
            config: Requested cluster shape

        Returns:
            The cluster identifier (the playground tag)

        Raises:
            SpawnError: If the playground or a probe cannot be spawned
            ProvisionTimeout: If the cluster never became ready. The
                playground process is left running.
        """
        cluster_id = config.tag
        self.tiup.start_playground(config)

        logger.info("Waiting tiup playground start")
        up = poll_until(
            lambda: self.tiup.is_ready(cluster_id),
            True,
            self.max_attempts,
            self.interval_ms,
            sleep=self.sleep,
        )
        if not up:
            logger.error(f"Cluster '{cluster_id}' not ready after {self.max_attempts} attempts")
            raise ProvisionTimeout(cluster_id, self.max_attempts)

        logger.info(f"Cluster '{cluster_id}' is ready")
        return cluster_id


class Reclaimer:
    """Stops a playground and waits until it no longer answers."""

    def __init__(
        self,
        tiup: TiUP,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.tiup = tiup
        self.max_attempts = max_attempts
        self.interval_ms = interval_ms
        self.sleep = sleep

    def reclaim(self, cluster_id: str) -> None:
        """
        Tear down a playground cluster.

        A failing ``tiup clean`` is only logged; absence is confirmed by
        probing until the cluster stops answering.

        Raises:
            SpawnError: If clean or a probe cannot be spawned
            ReclaimTimeout: If the cluster kept answering
        """
        result = self.tiup.clean(cluster_id)
        if not result.ok:
            logger.warning(
                f"tiup clean {cluster_id} exited with return code {result.returncode}: "
                f"{result.stderr.strip()}"
            )

        up = poll_until(
            lambda: self.tiup.is_ready(cluster_id),
            False,
            self.max_attempts,
            self.interval_ms,
            sleep=self.sleep,
        )
        if up:
            logger.error(f"Cluster '{cluster_id}' still up after {self.max_attempts} attempts")
            raise ReclaimTimeout(cluster_id, self.max_attempts)

        logger.info(f"Cluster '{cluster_id}' is gone")
