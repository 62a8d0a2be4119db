"""Serve a tree from a nested JSON topology snapshot."""

from collections.abc import Mapping, Sequence
from typing import Any

from fabric_tree.core.health.chunks import (
    application_health_hooks,
    node_health_hooks,
    partition_health_hooks,
    service_health_hooks,
)
from fabric_tree.models.health import HealthState
from fabric_tree.models.node import ListSettings, TreeNodeRecord
from fabric_tree.protocols import ChildrenQuery


def parse_snapshot_entry(
    raw: Mapping[str, Any],
    *,
    app_name: str | None = None,
    service_name: str | None = None,
) -> TreeNodeRecord:
    """Turn one snapshot entry into a tree record.

    Entry keys: ``name`` (required), ``id``, ``kind`` (node, application,
    service or partition; enables health chunk hooks), ``healthState``,
    ``sortKey``, ``searchable``, ``startExpanded``, ``pageSize`` and
    ``children``. Entries without a ``children`` key are leaves. Health hooks
    only fire while the row's own group is expanded, so leaf rows never poll.
    """
    if not isinstance(raw, Mapping) or not raw.get("name"):
        msg = f"Snapshot entry needs a 'name': {raw!r}"
        raise ValueError(msg)

    name = raw["name"]
    node_id = raw.get("id")
    kind = raw.get("kind")
    key = node_id or name

    hooks = None
    if kind == "node":
        hooks = node_health_hooks(key)
    elif kind == "application":
        hooks = application_health_hooks(key)
        app_name = key
    elif kind == "service" and app_name:
        hooks = service_health_hooks(app_name, key)
        service_name = key
    elif kind == "partition" and app_name and service_name:
        hooks = partition_health_hooks(app_name, service_name, key)

    children_query = None
    if "children" in raw:
        children_query = snapshot_children_query(
            raw["children"], app_name=app_name, service_name=service_name
        )

    list_settings = None
    if raw.get("pageSize"):
        list_settings = ListSettings(limit=int(raw["pageSize"]))

    return TreeNodeRecord(
        display_name=name,
        node_id=node_id,
        sort_key=tuple(raw.get("sortKey") or ()),
        children_query=children_query,
        is_children_support_search=bool(raw.get("searchable", False)),
        start_expanded=bool(raw.get("startExpanded", False)),
        list_settings=list_settings,
        health_state=HealthState.parse(raw.get("healthState")),
        update_health_chunk_query_description=hooks[0] if hooks else None,
        merge_cluster_health_state_chunk=hooks[1] if hooks else None,
    )


def snapshot_children_query(
    entries: Sequence[Mapping[str, Any]],
    *,
    app_name: str | None = None,
    service_name: str | None = None,
) -> ChildrenQuery:
    """Build a children query that answers with fresh records for ``entries``."""
    if not isinstance(entries, list):
        msg = f"Snapshot children must be a list, got {type(entries).__name__}"
        raise ValueError(msg)

    async def query() -> list[TreeNodeRecord]:
        return [
            parse_snapshot_entry(e, app_name=app_name, service_name=service_name)
            for e in entries
        ]

    return query


def load_snapshot(data: Any) -> ChildrenQuery:
    """Return the top-level children query of a snapshot document.

    The document is either a list of entries or a mapping with a
    ``children`` list.
    """
    if isinstance(data, Mapping):
        data = data.get("children")
    if not isinstance(data, list):
        msg = "Snapshot must be a list of entries or an object with a 'children' list"
        raise ValueError(msg)
    return snapshot_children_query(data)
