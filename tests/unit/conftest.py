"""Shared test fixtures."""

import pytest

from fabric_tree.core.tree.tree import TreeViewModel
from fabric_tree.models.node import ListSettings
from tests.unit.fakes import FakeChildrenQuery, record


@pytest.fixture
def apps_query() -> FakeChildrenQuery:
    """Children of the 'Applications' node: three apps, app1 has two services."""
    services = FakeChildrenQuery([record("svc-b"), record("svc-a")])
    return FakeChildrenQuery(
        [
            record("app2"),
            record("app1", children=services),
            record("app3"),
        ]
    )


@pytest.fixture
def cluster_query(apps_query: FakeChildrenQuery) -> FakeChildrenQuery:
    """Top level of a cluster tree: Applications and Nodes."""
    nodes = FakeChildrenQuery([record(f"node{i}") for i in range(1, 6)])
    return FakeChildrenQuery(
        [
            record("Nodes", children=nodes, list_settings=ListSettings(limit=2)),
            record("Applications", children=apps_query),
        ]
    )


@pytest.fixture
def tree(cluster_query: FakeChildrenQuery) -> TreeViewModel:
    return TreeViewModel(cluster_query)
