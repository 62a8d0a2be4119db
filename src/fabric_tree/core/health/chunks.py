"""Health chunk hooks for the common kinds of topology nodes."""

from fabric_tree.models.health import (
    ClusterHealthChunk,
    ClusterHealthChunkQueryDescription,
    HealthState,
)
from fabric_tree.protocols import HealthChunkMerger, HealthChunkQueryContributor


def node_health_hooks(node_name: str) -> tuple[HealthChunkQueryContributor, HealthChunkMerger]:
    """Hooks for a cluster node row."""

    def contribute(description: ClusterHealthChunkQueryDescription) -> None:
        description.add_node_filter(node_name)

    async def merge(chunk: ClusterHealthChunk) -> HealthState | None:
        return chunk.node_health_state(node_name)

    return contribute, merge


def application_health_hooks(
    app_name: str,
) -> tuple[HealthChunkQueryContributor, HealthChunkMerger]:
    """Hooks for an application row."""

    def contribute(description: ClusterHealthChunkQueryDescription) -> None:
        description.application_filter(app_name)

    async def merge(chunk: ClusterHealthChunk) -> HealthState | None:
        return chunk.application_health_state(app_name)

    return contribute, merge


def service_health_hooks(
    app_name: str, service_name: str
) -> tuple[HealthChunkQueryContributor, HealthChunkMerger]:
    """Hooks for a service row under an application."""

    def contribute(description: ClusterHealthChunkQueryDescription) -> None:
        description.service_filter(app_name, service_name)

    async def merge(chunk: ClusterHealthChunk) -> HealthState | None:
        return chunk.service_health_state(app_name, service_name)

    return contribute, merge


def partition_health_hooks(
    app_name: str, service_name: str, partition_id: str
) -> tuple[HealthChunkQueryContributor, HealthChunkMerger]:
    """Hooks for a partition row under a service."""

    def contribute(description: ClusterHealthChunkQueryDescription) -> None:
        description.add_partition_filter(app_name, service_name, partition_id)

    async def merge(chunk: ClusterHealthChunk) -> HealthState | None:
        return chunk.partition_health_state(app_name, service_name, partition_id)

    return contribute, merge
