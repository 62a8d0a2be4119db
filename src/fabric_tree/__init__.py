"""Lazy, reconciling tree view-models for cluster topology and health trees."""

from fabric_tree.core.tree.group import TreeNodeGroupViewModel
from fabric_tree.core.tree.node import TreeNodeViewModel
from fabric_tree.core.tree.tree import TreeViewModel
from fabric_tree.models.node import ListSettings, TreeNodeRecord
from fabric_tree.protocols import ApplicationLookupProtocol, ChildrenQuery, RouteResolverProtocol

__all__ = [
    "ApplicationLookupProtocol",
    "ChildrenQuery",
    "ListSettings",
    "RouteResolverProtocol",
    "TreeNodeGroupViewModel",
    "TreeNodeRecord",
    "TreeNodeViewModel",
    "TreeViewModel",
]
