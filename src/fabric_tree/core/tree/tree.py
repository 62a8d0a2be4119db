"""Tree root: shared selection state and the entry points of the refresh cycle."""

import asyncio
from collections.abc import Sequence

from loguru import logger

from fabric_tree.core.tree.group import TreeNodeGroupViewModel
from fabric_tree.core.tree.node import TreeNodeViewModel
from fabric_tree.models.health import ClusterHealthChunk, ClusterHealthChunkQueryDescription
from fabric_tree.protocols import ChildrenQuery


class TreeViewModel:
    """Root of a navigable tree.

    Owns the top-level group and the current selection. Every group and
    node of the tree holds a reference back to this object.
    """

    def __init__(
        self, children_query: ChildrenQuery, *, is_children_support_search: bool = True
    ) -> None:
        self.children_query = children_query
        self.is_children_support_search = is_children_support_search
        self.search_term = ""
        self.child_group = TreeNodeGroupViewModel(
            self, None, children_query, is_children_support_search
        )
        self._selected_node: TreeNodeViewModel | None = None

    @property
    def selected_node(self) -> TreeNodeViewModel | None:
        return self._selected_node

    def select_node(self, node: TreeNodeViewModel) -> None:
        self._selected_node = node

    def clear_selection(self) -> None:
        self._selected_node = None

    async def load(self) -> None:
        """Expand the root group, fetching the top-level nodes."""
        await self.child_group.expand()

    async def refresh(self) -> None:
        """Re-run the active search, or reconcile the expanded part of the tree."""
        if self.search_term:
            await self._run_search(self.search_term)
        else:
            await self.child_group.refresh_expanded_children_recursively()

    async def search(self, term: str) -> None:
        """Show only branches with a node whose name contains ``term``.

        A blank term clears the search.
        """
        term = term.strip()
        if not term:
            await self.clear_search()
            return
        self.search_term = term
        await self._run_search(term)

    async def clear_search(self) -> None:
        """Go back to the lazily loaded tree."""
        self.search_term = ""
        self._replace_root(
            TreeNodeGroupViewModel(self, None, self.children_query, self.is_children_support_search)
        )
        await self.load()

    async def _run_search(self, term: str) -> None:
        logger.debug("Searching tree for {!r}", term)
        group = TreeNodeGroupViewModel(self, None, self.children_query, True, expanded=True)
        self._replace_root(group)
        await group.search_through_children_recursively(term)

    def _replace_root(self, group: TreeNodeGroupViewModel) -> None:
        # Every node of the old root goes away with it.
        self.clear_selection()
        self.child_group = group

    async def select_tree_node(self, path: Sequence[str]) -> TreeNodeViewModel | None:
        """Expand the groups along ``path`` (node ids from the top) and select the last node.

        Returns:
            The selected node, or None if some id on the path does not exist.
            In that case the deepest node reached stays selected.
        """
        group = self.child_group
        await group.expand()
        node: TreeNodeViewModel | None = None
        for i, node_id in enumerate(path):
            node = next((c for c in group.children if c.node_id == node_id), None)
            if node is None:
                logger.debug("Node {!r} not found while selecting {!r}", node_id, list(path))
                return None
            group.show_on_page(node)
            node.select()
            group = node.child_group
            if i < len(path) - 1:
                await group.expand()
        return node

    async def expand_to_depth(self, depth: int) -> None:
        """Expand every node with children down to ``depth`` levels below the top level."""
        await self.child_group.expand()
        groups = [self.child_group]
        for _ in range(depth):
            nodes = [n for g in groups for n in g.children if n.has_children]
            await asyncio.gather(*(node.child_group.expand() for node in nodes))
            groups = [n.child_group for n in nodes]

    def build_health_chunk_query_description(self) -> ClusterHealthChunkQueryDescription:
        """Describe the health chunk covering what is currently visible."""
        description = ClusterHealthChunkQueryDescription()
        self.child_group.update_health_chunk_query_recursively(description)
        return description

    async def merge_cluster_health_chunk(self, chunk: ClusterHealthChunk) -> None:
        await self.child_group.update_data_model_from_health_chunk_recursively(chunk)
