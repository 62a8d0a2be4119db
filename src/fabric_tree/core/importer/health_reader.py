"""Parse raw health payloads into typed evaluation and chunk models."""

from collections.abc import Callable, Mapping
from typing import Any

from loguru import logger

from fabric_tree.models.health import (
    AGGREGATE_KINDS,
    AggregateEvaluation,
    ApplicationEvaluation,
    ApplicationHealthChunk,
    ApplicationsEvaluation,
    ClusterHealthChunk,
    DeployedApplicationEvaluation,
    DeployedServicePackageEvaluation,
    EventEvaluation,
    HealthState,
    NodeEvaluation,
    NodesEvaluation,
    PartitionEvaluation,
    PartitionHealthChunk,
    RawHealthEvaluation,
    ReplicaEvaluation,
    ServiceEvaluation,
    ServiceHealthChunk,
    ServicesEvaluation,
)


def _required(raw: Mapping[str, Any], key: str, kind: str) -> Any:
    value = raw.get(key)
    if value is None:
        msg = f"{kind} evaluation is missing {key!r}"
        raise ValueError(msg)
    return value


def _deployed_application(raw: Mapping[str, Any], common: dict[str, Any]) -> RawHealthEvaluation:
    event = raw.get("UnhealthyEvent")
    if not isinstance(event, Mapping):
        msg = "DeployedApplication evaluation is missing 'UnhealthyEvent'"
        raise ValueError(msg)
    return DeployedApplicationEvaluation(
        **common,
        node_name=_required(event, "NodeName", "DeployedApplication"),
        application_name=_required(event, "Name", "DeployedApplication"),
    )


_KIND_PARSERS: dict[str, Callable[[Mapping[str, Any], dict[str, Any]], RawHealthEvaluation]] = {
    "Nodes": lambda raw, common: NodesEvaluation(**common),
    "Node": lambda raw, common: NodeEvaluation(
        **common, node_name=_required(raw, "NodeName", "Node")
    ),
    "Applications": lambda raw, common: ApplicationsEvaluation(**common),
    "Application": lambda raw, common: ApplicationEvaluation(
        **common, application_name=_required(raw, "ApplicationName", "Application")
    ),
    "Service": lambda raw, common: ServiceEvaluation(
        **common, service_name=_required(raw, "ServiceName", "Service")
    ),
    "Partition": lambda raw, common: PartitionEvaluation(
        **common, partition_id=str(_required(raw, "PartitionId", "Partition"))
    ),
    "Replica": lambda raw, common: ReplicaEvaluation(
        **common,
        replica_or_instance_id=str(_required(raw, "ReplicaOrInstanceId", "Replica")),
    ),
    "Event": lambda raw, common: EventEvaluation(
        **common, source_id=raw.get("SourceId", ""), property_name=raw.get("Property", "")
    ),
    "DeployedApplication": _deployed_application,
    "DeployedServicePackage": lambda raw, common: DeployedServicePackageEvaluation(
        **common,
        service_manifest_name=_required(raw, "ServiceManifestName", "DeployedServicePackage"),
        service_package_activation_id=raw.get("ServicePackageActivationId") or None,
    ),
    "Services": lambda raw, common: ServicesEvaluation(
        **common, service_type_name=raw.get("ServiceTypeName", "")
    ),
}


def parse_raw_health_evaluation(raw: Mapping[str, Any]) -> RawHealthEvaluation:
    """Parse one backend health evaluation, including its nested unhealthy evaluations.

    Args:
        raw: A mapping with ``Kind``, ``AggregatedHealthState``, ``Description``,
            ``UnhealthyEvaluations`` and the kind-specific fields.

    Returns:
        The evaluation variant for the kind. Unknown kinds are kept as a plain
        RawHealthEvaluation carrying the kind string.
    """
    if not isinstance(raw, Mapping):
        msg = f"Health evaluation must be a mapping, got {type(raw).__name__}"
        raise ValueError(msg)

    kind = raw.get("Kind")
    if not kind:
        msg = "Health evaluation is missing 'Kind'"
        raise ValueError(msg)

    children = parse_unhealthy_evaluations(raw.get("UnhealthyEvaluations"))
    common: dict[str, Any] = {
        "kind": kind,
        "health_state": HealthState.parse(raw.get("AggregatedHealthState")),
        "description": raw.get("Description", ""),
        "unhealthy_evaluations": tuple(children),
    }

    parser = _KIND_PARSERS.get(kind)
    if parser is not None:
        return parser(raw, common)
    if kind in AGGREGATE_KINDS:
        return AggregateEvaluation(**common)
    logger.debug("Unrecognized evaluation kind {!r}, keeping generic record", kind)
    return RawHealthEvaluation(**common)


def parse_unhealthy_evaluations(raw_list: Any) -> list[RawHealthEvaluation]:
    """Parse a ``[{"HealthEvaluation": {...}}, ...]`` wrapper list.

    Entries without a ``HealthEvaluation`` are skipped.
    """
    if not raw_list:
        return []
    if not isinstance(raw_list, list):
        msg = f"Unhealthy evaluations must be a list, got {type(raw_list).__name__}"
        raise ValueError(msg)

    result: list[RawHealthEvaluation] = []
    for item in raw_list:
        health_eval = item.get("HealthEvaluation") if isinstance(item, Mapping) else None
        if not health_eval:
            continue
        result.append(parse_raw_health_evaluation(health_eval))
    return result


def _items(raw: Mapping[str, Any], key: str) -> list[Mapping[str, Any]]:
    container = raw.get(key) or {}
    return list(container.get("Items") or [])


def parse_cluster_health_chunk(raw: Mapping[str, Any]) -> ClusterHealthChunk:
    """Parse a backend cluster health chunk response."""
    nodes = {
        item["NodeName"]: HealthState.parse(item.get("HealthState"))
        for item in _items(raw, "NodeHealthStateChunks")
    }

    applications: dict[str, ApplicationHealthChunk] = {}
    for app in _items(raw, "ApplicationHealthStateChunks"):
        services: dict[str, ServiceHealthChunk] = {}
        for service in _items(app, "ServiceHealthStateChunks"):
            partitions: dict[str, PartitionHealthChunk] = {}
            for partition in _items(service, "PartitionHealthStateChunks"):
                replicas = {
                    str(replica["ReplicaOrInstanceId"]): HealthState.parse(
                        replica.get("HealthState")
                    )
                    for replica in _items(partition, "ReplicaHealthStateChunks")
                }
                partition_id = str(partition["PartitionId"])
                partitions[partition_id] = PartitionHealthChunk(
                    partition_id=partition_id,
                    health_state=HealthState.parse(partition.get("HealthState")),
                    replicas=replicas,
                )
            services[service["ServiceName"]] = ServiceHealthChunk(
                service_name=service["ServiceName"],
                health_state=HealthState.parse(service.get("HealthState")),
                partitions=partitions,
            )
        applications[app["ApplicationName"]] = ApplicationHealthChunk(
            application_name=app["ApplicationName"],
            health_state=HealthState.parse(app.get("HealthState")),
            type_name=app.get("ApplicationTypeName", ""),
            services=services,
        )

    return ClusterHealthChunk(
        health_state=HealthState.parse(raw.get("HealthState")),
        nodes=nodes,
        applications=applications,
    )
