"""Unhealthy evaluation tree: building and walking."""

from collections.abc import Mapping, Sequence
from typing import Any

from fabric_tree.core.health.evaluations import get_parsed_health_evaluations
from fabric_tree.core.importer.health_reader import parse_unhealthy_evaluations
from fabric_tree.models.health import (
    HealthEvaluation,
    HealthState,
    RawHealthEvaluation,
    UnhealthyEvaluationNode,
)
from fabric_tree.protocols import ApplicationLookupProtocol, RouteResolverProtocol


def recursively_build_tree(
    health_evaluation: HealthEvaluation,
    parent: UnhealthyEvaluationNode | None = None,
) -> UnhealthyEvaluationNode:
    """Build the unhealthy evaluation tree rooted at ``health_evaluation``.

    ``total_child_count`` counts the node itself plus all descendants.
    ``contains_error_in_path`` is set when the node or any descendant is
    in the Error state. Both are computed bottom-up as children return.
    """
    current = UnhealthyEvaluationNode(health_evaluation=health_evaluation)
    current.parent = parent
    contains_error = health_evaluation.health_state is HealthState.ERROR

    for child in health_evaluation.children:
        child_node = recursively_build_tree(child, current)
        current.total_child_count += child_node.total_child_count
        current.children.append(child_node)
        if child_node.contains_error_in_path:
            contains_error = True

    current.contains_error_in_path = contains_error
    return current


def get_nested_node(
    path: Sequence[str], root: UnhealthyEvaluationNode
) -> UnhealthyEvaluationNode | None:
    """Follow a path of unique ids down from ``root``; None when a segment is missing."""
    node = root
    for unique_id in path:
        node = next(
            (c for c in node.children if c.health_evaluation.unique_id == unique_id),
            None,
        )
        if node is None:
            return None
    return node


def get_parent_path(node: UnhealthyEvaluationNode) -> list[UnhealthyEvaluationNode]:
    """Return the ancestors of ``node``, root first."""
    parents: list[UnhealthyEvaluationNode] = []
    ref = node.parent
    while ref is not None:
        parents.append(ref)
        ref = ref.parent
    parents.reverse()
    return parents


def get_leaf_nodes(root: UnhealthyEvaluationNode) -> list[UnhealthyEvaluationNode]:
    if not root.children:
        return [root]
    nodes: list[UnhealthyEvaluationNode] = []
    for child in root.children:
        nodes.extend(get_leaf_nodes(child))
    return nodes


def skip_tree_depth_parent_node(
    root: UnhealthyEvaluationNode, depth: int = 1
) -> list[UnhealthyEvaluationNode]:
    """Return the nodes exactly ``depth`` levels below ``root``."""
    if depth <= 0:
        return [root]
    nodes: list[UnhealthyEvaluationNode] = []
    for child in root.children:
        nodes.extend(skip_tree_depth_parent_node(child, depth - 1))
    return nodes


def build_unhealthy_evaluation_tree(
    payload: Mapping[str, Any],
    routes: RouteResolverProtocol,
    apps: ApplicationLookupProtocol,
    *,
    base_url: str = "",
) -> UnhealthyEvaluationNode:
    """Build the full unhealthy evaluation tree of an entity's health payload.

    The tree is rebuilt from scratch for every payload; there is no
    incremental update.

    Args:
        payload: Entity health with ``AggregatedHealthState`` and
            ``UnhealthyEvaluations``; ``Kind`` names the root (default Cluster).
        routes: Route resolver.
        apps: Application lookup.
        base_url: URL of the entity's own page.
    """
    if not isinstance(payload, Mapping):
        msg = f"Health payload must be a mapping, got {type(payload).__name__}"
        raise ValueError(msg)

    kind = payload.get("Kind") or "Cluster"
    evaluations = parse_unhealthy_evaluations(payload.get("UnhealthyEvaluations"))
    root_raw = RawHealthEvaluation(
        kind=kind,
        health_state=HealthState.parse(payload.get("AggregatedHealthState")),
        description=payload.get("Description", ""),
        unhealthy_evaluations=tuple(evaluations),
    )
    root = HealthEvaluation(raw=root_raw, view_path_url=base_url, tree_name=kind, unique_id=kind)
    get_parsed_health_evaluations(
        root_raw.unhealthy_evaluations, routes, apps, level=1, parent=root, base_url=base_url
    )
    return recursively_build_tree(root)
