"""Data models for playground configuration."""

from playground_manager.models.cluster import ROLES, ClusterConfig, new_cluster_id

__all__ = [
    "ClusterConfig",
    "ROLES",
    "new_cluster_id",
]
