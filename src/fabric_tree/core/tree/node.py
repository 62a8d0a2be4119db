"""A single row of the navigable topology tree."""

from typing import TYPE_CHECKING, Any

from fabric_tree.core.tree.group import TreeNodeGroupViewModel
from fabric_tree.models.health import (
    ClusterHealthChunk,
    ClusterHealthChunkQueryDescription,
    HealthState,
)
from fabric_tree.models.node import ListSettings, TreeNodeRecord

if TYPE_CHECKING:
    from fabric_tree.core.tree.tree import TreeViewModel


class TreeNodeViewModel:
    """One tree node, backed by a raw record and owning its child group.

    The node is updated in place when a refresh brings a newer record with
    the same ``node_id``; its child group and list settings are never
    replaced.
    """

    def __init__(
        self,
        tree: "TreeViewModel",
        record: TreeNodeRecord,
        parent: "TreeNodeViewModel | None" = None,
        *,
        start_expanded: bool | None = None,
    ) -> None:
        self.parent = parent
        self.node_id = record.node_id
        self.list_settings: ListSettings | None = record.list_settings
        self.health_state = record.health_state
        self._tree = tree
        self._record = record

        if start_expanded is None:
            start_expanded = record.start_expanded
        self.child_group = TreeNodeGroupViewModel(
            tree,
            self,
            record.children_query,
            record.is_children_support_search,
            expanded=start_expanded,
        )

    def __repr__(self) -> str:
        return f"TreeNodeViewModel({self.unique_id!r}, {self.display_name!r})"

    @property
    def display_name(self) -> str:
        return self._record.display_name

    @property
    def unique_id(self) -> str:
        own = self.node_id or self.display_name
        return f"{self.parent.unique_id}/{own}" if self.parent else own

    @property
    def depth(self) -> int:
        return self.parent.depth + 1 if self.parent else 0

    @property
    def is_children_support_search(self) -> bool:
        return self._record.is_children_support_search

    @property
    def start_expanded(self) -> bool:
        return self._record.start_expanded

    @property
    def is_selected(self) -> bool:
        return self._tree.selected_node is self

    @property
    def has_children(self) -> bool:
        return self.child_group.children_query is not None and self.child_group.has_children

    def sort_by(self) -> tuple[Any, ...]:
        """Sort key: the record's key, then display name, then node id."""
        return (*self._record.sort_key, self.display_name, self.node_id or "")

    def update(self, record: TreeNodeRecord) -> None:
        """Take over the fields of a newer record for the same node."""
        self._record = record
        self.health_state = record.health_state
        self.child_group.children_query = record.children_query
        self.child_group.is_children_support_search = record.is_children_support_search

    def select(self) -> None:
        self._tree.select_node(self)

    async def toggle(self) -> None:
        await self.child_group.toggle()

    def is_parent_of(self, node: "TreeNodeViewModel") -> bool:
        """Whether this node is an ancestor of ``node``."""
        ancestor = node.parent
        while ancestor is not None:
            if ancestor is self:
                return True
            ancestor = ancestor.parent
        return False

    def update_health_chunk_query_description(
        self, description: ClusterHealthChunkQueryDescription
    ) -> None:
        hook = self._record.update_health_chunk_query_description
        if hook is not None:
            hook(description)

    async def merge_cluster_health_state_chunk(self, chunk: ClusterHealthChunk) -> None:
        hook = self._record.merge_cluster_health_state_chunk
        if hook is None:
            return
        state: HealthState | None = await hook(chunk)
        if state is not None:
            self.health_state = state
