"""Navigation paths and flattening for unhealthy health evaluations."""

from collections.abc import Sequence
from dataclasses import dataclass

from fabric_tree.models.health import (
    AggregateEvaluation,
    ApplicationEvaluation,
    ApplicationsEvaluation,
    DeployedApplicationEvaluation,
    DeployedServicePackageEvaluation,
    EventEvaluation,
    HealthEvaluation,
    NodeEvaluation,
    NodesEvaluation,
    PartitionEvaluation,
    RawHealthEvaluation,
    ReplicaEvaluation,
    ServiceEvaluation,
    ServicesEvaluation,
)
from fabric_tree.protocols import ApplicationLookupProtocol, RouteResolverProtocol

_SCHEME = "fabric:/"


@dataclass(frozen=True)
class ViewPathData:
    """Navigation data computed for one evaluation."""

    view_path_url: str
    display_name: str
    name: str
    unique_id: str


def _strip_scheme(name: str) -> str:
    return name.replace(_SCHEME, "", 1)


def get_view_path_url(
    evaluation: RawHealthEvaluation,
    routes: RouteResolverProtocol,
    apps: ApplicationLookupProtocol,
    parent_url: str = "",
) -> ViewPathData:
    """Compute the URL that routes to the page of an evaluated entity.

    URLs are built from the parent's URL plus the minimum needed to reach
    this entity. Application kinds consult ``apps`` for the application type,
    so the lookup must be populated before calling this.

    Args:
        evaluation: The evaluation to resolve.
        routes: Route resolver for absolute view paths.
        apps: Application name to type name lookup.
        parent_url: URL of the parent evaluation (or the page's base URL).
    """
    view_path_url = ""
    name = ""
    unique_id = ""

    match evaluation:
        case NodesEvaluation():
            view_path_url = routes.get_nodes_view_path()
            name = "Nodes"
            unique_id = name
        case NodeEvaluation(node_name=node_name):
            name = node_name
            unique_id = name
            view_path_url = routes.get_node_view_path(node_name)
        case ApplicationsEvaluation():
            view_path_url = routes.get_apps_view_path()
            name = "applications"
            unique_id = name
        case ApplicationEvaluation(application_name=application_name):
            app_name = _strip_scheme(application_name)
            name = app_name
            unique_id = application_name
            app_type = apps.find_type_name(app_name)
            if app_type:
                view_path_url = (
                    f"/apptype/{routes.double_encode(app_type)}"
                    f"/app/{routes.double_encode(app_name)}"
                )
        case ServiceEvaluation(service_name=service_name):
            exact_service_name = _strip_scheme(service_name)
            name = exact_service_name
            unique_id = exact_service_name
            # System services live under a fixed application path.
            if service_name.startswith("fabric:/System"):
                view_path_url = (
                    f"/apptype/System/app/System/service/{routes.double_encode(exact_service_name)}"
                )
            else:
                view_path_url = f"{parent_url}/service/{routes.double_encode(exact_service_name)}"
        case PartitionEvaluation(partition_id=partition_id):
            name = partition_id
            unique_id = partition_id
            view_path_url = f"{parent_url}/partition/{routes.double_encode(partition_id)}"
        case ReplicaEvaluation(replica_or_instance_id=replica_id):
            name = replica_id
            unique_id = replica_id
            view_path_url = f"{parent_url}/replica/{routes.double_encode(replica_id)}"
        case EventEvaluation(source_id=source_id, property_name=prop):
            unique_id = source_id + prop
            if parent_url:
                view_path_url = parent_url
                unique_id += parent_url
            name = "Event"
        case DeployedApplicationEvaluation(node_name=node_name, application_name=application_name):
            app_name = _strip_scheme(application_name)
            name = app_name
            unique_id = name
            view_path_url = (
                f"/node/{routes.double_encode(node_name)}"
                f"/deployedapp/{routes.double_encode(app_name)}"
            )
        case DeployedServicePackageEvaluation(
            service_manifest_name=manifest_name,
            service_package_activation_id=activation_id,
        ):
            # No unique id is assigned to deployed service packages.
            name = manifest_name
            activation_segment = (
                f"activationid/{routes.double_encode(activation_id)}" if activation_id else ""
            )
            view_path_url = f"{parent_url}/deployedservice/{activation_segment}{manifest_name}"
        case ServicesEvaluation() | AggregateEvaluation():
            # Aggregate placeholders share the default path and name; the
            # unique id is the one Replicas gets, for all four kinds.
            unique_id = "RR" + parent_url
            view_path_url = parent_url
            name = evaluation.kind
        case _:
            view_path_url = parent_url
            name = evaluation.kind

    return ViewPathData(view_path_url=view_path_url, display_name="", name=name, unique_id=unique_id)


def get_parsed_health_evaluations(
    raw_evaluations: Sequence[RawHealthEvaluation],
    routes: RouteResolverProtocol,
    apps: ApplicationLookupProtocol,
    *,
    level: int = 0,
    parent: HealthEvaluation | None = None,
    base_url: str = "",
) -> list[HealthEvaluation]:
    """Flatten nested evaluations depth-first, parents before their children.

    Each evaluation gets its navigation data and is attached to ``parent``,
    whose ``children`` list is replaced by the evaluations at this level.

    Args:
        raw_evaluations: Evaluations at this level.
        routes: Route resolver.
        apps: Application lookup.
        level: Nesting depth of ``raw_evaluations``.
        parent: The already-parsed parent evaluation, if any.
        base_url: Parent URL used for top-level evaluations.
    """
    health_evals: list[HealthEvaluation] = []
    children: list[HealthEvaluation] = []
    parent_url = parent.view_path_url if parent is not None else base_url

    for raw in raw_evaluations:
        path_data = get_view_path_url(raw, routes, apps, parent_url)
        health = HealthEvaluation(
            raw=raw,
            level=level,
            view_path_url=path_data.view_path_url,
            display_name=path_data.display_name,
            tree_name=path_data.name,
            unique_id=path_data.unique_id,
        )
        health.parent = parent
        health_evals.append(health)
        health_evals.extend(
            get_parsed_health_evaluations(
                raw.unhealthy_evaluations,
                routes,
                apps,
                level=level + 1,
                parent=health,
                base_url=base_url,
            )
        )
        children.append(health)

    if parent is not None:
        parent.children = children
    return health_evals
