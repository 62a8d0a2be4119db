"""Protocols for the collaborators injected into the tree view-models."""

from collections.abc import Awaitable, Sequence
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from fabric_tree.models.health import (
        ClusterHealthChunk,
        ClusterHealthChunkQueryDescription,
        HealthState,
    )
    from fabric_tree.models.node import TreeNodeRecord


@runtime_checkable
class ChildrenQuery(Protocol):
    """Fetches the raw child records of one tree node."""

    def __call__(self) -> Awaitable[Sequence["TreeNodeRecord"]]:
        """Return the current children of the node."""
        ...


class HealthChunkQueryContributor(Protocol):
    """Adds a node's identity to an outgoing health chunk query."""

    def __call__(self, description: "ClusterHealthChunkQueryDescription") -> None: ...


class HealthChunkMerger(Protocol):
    """Extracts a node's new health state from an incoming health chunk."""

    def __call__(self, chunk: "ClusterHealthChunk") -> Awaitable["HealthState | None"]: ...


@runtime_checkable
class RouteResolverProtocol(Protocol):
    """Protocol for building navigable view paths."""

    def get_nodes_view_path(self) -> str:
        """Path of the node list view."""
        ...

    def get_node_view_path(self, node_name: str) -> str:
        """Path of a single node view."""
        ...

    def get_apps_view_path(self) -> str:
        """Path of the application list view."""
        ...

    def double_encode(self, segment: str) -> str:
        """Encode a path segment for embedding in a routed URL."""
        ...


@runtime_checkable
class ApplicationLookupProtocol(Protocol):
    """Protocol for resolving an application name to its type name."""

    def find_type_name(self, app_name: str) -> str | None:
        """Return the application type name, or None if the application is unknown."""
        ...
