"""Health models: states, evaluation kinds, evaluation trees and health chunks."""

import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class HealthState(Enum):
    """Aggregated health state as reported by the cluster."""

    INVALID = "Invalid"
    OK = "Ok"
    WARNING = "Warning"
    ERROR = "Error"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, raw: str | None) -> "HealthState":
        """Parse a backend health state string; anything unrecognized is UNKNOWN."""
        for state in cls:
            if state.value == raw:
                return state
        return cls.UNKNOWN


# --- Raw evaluations: one variant per evaluation kind ---


@dataclass(frozen=True)
class RawHealthEvaluation:
    """Fields shared by every evaluation kind.

    Kinds without a dedicated subclass are represented by this class
    directly, keeping their ``kind`` string.
    """

    kind: str
    health_state: HealthState = HealthState.UNKNOWN
    description: str = ""
    unhealthy_evaluations: tuple["RawHealthEvaluation", ...] = ()


@dataclass(frozen=True)
class NodesEvaluation(RawHealthEvaluation):
    kind: str = "Nodes"


@dataclass(frozen=True)
class NodeEvaluation(RawHealthEvaluation):
    kind: str = "Node"
    node_name: str = ""


@dataclass(frozen=True)
class ApplicationsEvaluation(RawHealthEvaluation):
    kind: str = "Applications"


@dataclass(frozen=True)
class ApplicationEvaluation(RawHealthEvaluation):
    kind: str = "Application"
    application_name: str = ""


@dataclass(frozen=True)
class ServiceEvaluation(RawHealthEvaluation):
    kind: str = "Service"
    service_name: str = ""


@dataclass(frozen=True)
class PartitionEvaluation(RawHealthEvaluation):
    kind: str = "Partition"
    partition_id: str = ""


@dataclass(frozen=True)
class ReplicaEvaluation(RawHealthEvaluation):
    kind: str = "Replica"
    replica_or_instance_id: str = ""


@dataclass(frozen=True)
class EventEvaluation(RawHealthEvaluation):
    kind: str = "Event"
    source_id: str = ""
    property_name: str = ""


@dataclass(frozen=True)
class DeployedApplicationEvaluation(RawHealthEvaluation):
    kind: str = "DeployedApplication"
    node_name: str = ""
    application_name: str = ""


@dataclass(frozen=True)
class DeployedServicePackageEvaluation(RawHealthEvaluation):
    kind: str = "DeployedServicePackage"
    service_manifest_name: str = ""
    service_package_activation_id: str | None = None


@dataclass(frozen=True)
class ServicesEvaluation(RawHealthEvaluation):
    kind: str = "Services"
    service_type_name: str = ""


@dataclass(frozen=True)
class AggregateEvaluation(RawHealthEvaluation):
    """Partitions, Replicas and DeployedServicePackages placeholders."""


AGGREGATE_KINDS: frozenset[str] = frozenset(
    {"DeployedServicePackages", "Services", "Partitions", "Replicas"}
)


# --- Parsed evaluation trees ---


@dataclass(eq=False)
class HealthEvaluation:
    """A raw evaluation annotated with its navigation data and position in the tree."""

    raw: RawHealthEvaluation
    level: int = 0
    view_path_url: str = ""
    display_name: str = ""
    tree_name: str = ""
    unique_id: str = ""
    children: list["HealthEvaluation"] = field(default_factory=list)
    _parent: "weakref.ref[HealthEvaluation] | None" = field(default=None, repr=False)

    @property
    def parent(self) -> "HealthEvaluation | None":
        return self._parent() if self._parent is not None else None

    @parent.setter
    def parent(self, value: "HealthEvaluation | None") -> None:
        self._parent = weakref.ref(value) if value is not None else None

    @property
    def kind(self) -> str:
        return self.raw.kind

    @property
    def health_state(self) -> HealthState:
        return self.raw.health_state

    @property
    def description(self) -> str:
        return self.raw.description


@dataclass(eq=False)
class UnhealthyEvaluationNode:
    """A node of the unhealthy evaluation tree."""

    health_evaluation: HealthEvaluation
    children: list["UnhealthyEvaluationNode"] = field(default_factory=list)
    total_child_count: int = 1
    contains_error_in_path: bool = False
    _parent: "weakref.ref[UnhealthyEvaluationNode] | None" = field(default=None, repr=False)

    @property
    def parent(self) -> "UnhealthyEvaluationNode | None":
        return self._parent() if self._parent is not None else None

    @parent.setter
    def parent(self, value: "UnhealthyEvaluationNode | None") -> None:
        self._parent = weakref.ref(value) if value is not None else None


# --- Health chunks ---


@dataclass(frozen=True)
class PartitionHealthChunk:
    partition_id: str
    health_state: HealthState
    replicas: dict[str, HealthState] = field(default_factory=dict)


@dataclass(frozen=True)
class ServiceHealthChunk:
    service_name: str
    health_state: HealthState
    partitions: dict[str, PartitionHealthChunk] = field(default_factory=dict)


@dataclass(frozen=True)
class ApplicationHealthChunk:
    application_name: str
    health_state: HealthState
    type_name: str = ""
    services: dict[str, ServiceHealthChunk] = field(default_factory=dict)


@dataclass(frozen=True)
class ClusterHealthChunk:
    """A partial cluster health payload covering only the queried entities."""

    health_state: HealthState
    nodes: dict[str, HealthState] = field(default_factory=dict)
    applications: dict[str, ApplicationHealthChunk] = field(default_factory=dict)

    def node_health_state(self, node_name: str) -> HealthState | None:
        return self.nodes.get(node_name)

    def application_health_state(self, app_name: str) -> HealthState | None:
        app = self.applications.get(app_name)
        return app.health_state if app else None

    def service_health_state(self, app_name: str, service_name: str) -> HealthState | None:
        service = self._service(app_name, service_name)
        return service.health_state if service else None

    def partition_health_state(
        self, app_name: str, service_name: str, partition_id: str
    ) -> HealthState | None:
        service = self._service(app_name, service_name)
        partition = service.partitions.get(partition_id) if service else None
        return partition.health_state if partition else None

    def replica_health_state(
        self, app_name: str, service_name: str, partition_id: str, replica_id: str
    ) -> HealthState | None:
        service = self._service(app_name, service_name)
        partition = service.partitions.get(partition_id) if service else None
        return partition.replicas.get(replica_id) if partition else None

    def _service(self, app_name: str, service_name: str) -> ServiceHealthChunk | None:
        app = self.applications.get(app_name)
        return app.services.get(service_name) if app else None


@dataclass
class ClusterHealthChunkQueryDescription:
    """Filters describing which entities a health chunk poll should cover.

    Expanded tree nodes add themselves while the tree is walked, so the
    poll only asks about what is currently visible.
    """

    node_filters: list[dict[str, Any]] = field(default_factory=list)
    application_filters: list[dict[str, Any]] = field(default_factory=list)

    def add_node_filter(self, node_name: str) -> None:
        if not any(f["NodeNameFilter"] == node_name for f in self.node_filters):
            self.node_filters.append({"NodeNameFilter": node_name})

    def application_filter(self, app_name: str) -> dict[str, Any]:
        """Return the filter for an application, creating it if needed."""
        for app_filter in self.application_filters:
            if app_filter["ApplicationNameFilter"] == app_name:
                return app_filter
        app_filter = {"ApplicationNameFilter": app_name, "ServiceFilters": []}
        self.application_filters.append(app_filter)
        return app_filter

    def service_filter(self, app_name: str, service_name: str) -> dict[str, Any]:
        """Return the filter for a service of an application, creating both if needed."""
        service_filters = self.application_filter(app_name)["ServiceFilters"]
        for service_filter in service_filters:
            if service_filter["ServiceNameFilter"] == service_name:
                return service_filter
        service_filter = {"ServiceNameFilter": service_name, "PartitionFilters": []}
        service_filters.append(service_filter)
        return service_filter

    def add_partition_filter(self, app_name: str, service_name: str, partition_id: str) -> None:
        partition_filters = self.service_filter(app_name, service_name)["PartitionFilters"]
        if not any(f["PartitionIdFilter"] == partition_id for f in partition_filters):
            partition_filters.append({"PartitionIdFilter": partition_id})

    def to_raw(self) -> dict[str, Any]:
        """Serialize to the backend request body."""
        return {"NodeFilters": self.node_filters, "ApplicationFilters": self.application_filters}
