"""The ordered, lazily loaded collection of children under one tree node."""

import asyncio
import bisect
from collections.abc import Awaitable, Iterable
from typing import TYPE_CHECKING, Any

from loguru import logger

from fabric_tree.models.health import ClusterHealthChunk, ClusterHealthChunkQueryDescription
from fabric_tree.models.node import TreeNodeRecord
from fabric_tree.protocols import ChildrenQuery

if TYPE_CHECKING:
    from fabric_tree.core.tree.node import TreeNodeViewModel
    from fabric_tree.core.tree.tree import TreeViewModel


def _sort_key(node: "TreeNodeViewModel") -> tuple[Any, ...]:
    return node.sort_by()


async def _join(awaitables: Iterable[Awaitable[Any]]) -> None:
    """Run all awaitables concurrently and wait for every one of them.

    The first failure is re-raised only after the rest have finished, so a
    caller never sees the join end while a sibling is still updating.
    """
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result


class TreeNodeGroupViewModel:
    """Children of a tree node (or of the tree root).

    ``children`` is kept sorted by each node's ``sort_by()`` key. At most one
    fetch through ``children_query`` is in flight at a time; concurrent
    ``get_children()`` callers share it.
    """

    def __init__(
        self,
        tree: "TreeViewModel",
        owning_node: "TreeNodeViewModel | None",
        children_query: ChildrenQuery | None,
        is_children_support_search: bool = False,
        *,
        expanded: bool = False,
    ) -> None:
        self.children: list["TreeNodeViewModel"] = []
        self.loading_children = False
        self.children_loaded = False
        self.is_children_support_search = is_children_support_search
        self.owning_node = owning_node
        self.children_query = children_query

        self._tree = tree
        self._is_expanded = expanded
        self._current_get_children: asyncio.Task[None] | None = None

    def __repr__(self) -> str:
        owner = self.owning_node.display_name if self.owning_node else "<root>"
        return (
            f"TreeNodeGroupViewModel({owner!r}, children={len(self.children)}, "
            f"expanded={self._is_expanded}, loaded={self.children_loaded})"
        )

    @property
    def displayed_children(self) -> list["TreeNodeViewModel"]:
        """Children inside the owning node's paging window."""
        settings = self.owning_node.list_settings if self.owning_node else None
        if settings is None:
            return self.children
        return self.children[settings.begin : settings.begin + settings.limit]

    @property
    def has_children(self) -> bool:
        return not self.children_loaded or len(self.children) != 0

    @property
    def is_expanded(self) -> bool:
        return self._is_expanded and self.has_children

    @property
    def is_collapsed(self) -> bool:
        return not self._is_expanded and self.has_children

    # --- Expansion ---

    async def toggle(self) -> None:
        self._is_expanded = not self._is_expanded
        if self._is_expanded:
            await self.get_children()

    async def expand(self) -> None:
        self._is_expanded = True
        await self.get_children()

    def collapse(self) -> None:
        """Collapse without discarding loaded children."""
        self._is_expanded = False

    async def get_children(self) -> None:
        """Load children once; later calls return immediately."""
        if self.children_query is None or self.children_loaded:
            return

        if self._current_get_children is None:
            self.loading_children = True
            self._current_get_children = asyncio.create_task(
                self._load_children(self.children_query)
            )

        # Shielded so one cancelled waiter does not cancel the fetch others share.
        await asyncio.shield(self._current_get_children)

    async def _load_children(self, query: ChildrenQuery) -> None:
        logger.debug("Fetching children of {!r}", self)
        try:
            response = await query()
            self._replace_children(sorted((self._new_node(r) for r in response), key=_sort_key))
            self.children_loaded = True
        finally:
            self._update_list_count()
            self._current_get_children = None
            self.loading_children = False

        await self._load_start_expanded(self.children)

    async def _load_start_expanded(self, nodes: Iterable["TreeNodeViewModel"]) -> None:
        """Load the groups of nodes created in the expanded state."""
        groups = [n.child_group for n in nodes if n.child_group._is_expanded]
        if not groups:
            return
        results = await asyncio.gather(*(g.get_children() for g in groups), return_exceptions=True)
        for group, result in zip(groups, results, strict=True):
            if isinstance(result, Exception):
                logger.warning("Failed to load start-expanded group {!r}: {}", group, result)

    # --- Paging ---

    def page_down(self) -> None:
        settings = self.owning_node.list_settings if self.owning_node else None
        if settings is not None and settings.current_page < settings.page_count:
            settings.current_page += 1

    def page_up(self) -> None:
        settings = self.owning_node.list_settings if self.owning_node else None
        if settings is not None and settings.current_page > 1:
            settings.current_page -= 1

    def page_first(self) -> None:
        settings = self.owning_node.list_settings if self.owning_node else None
        if settings is not None:
            settings.current_page = 1

    def page_last(self) -> None:
        settings = self.owning_node.list_settings if self.owning_node else None
        if settings is not None:
            settings.current_page = settings.page_count

    def show_on_page(self, node: "TreeNodeViewModel") -> None:
        """Move the paging window to the page holding ``node``."""
        settings = self.owning_node.list_settings if self.owning_node else None
        if settings is None or node not in self.children:
            return
        settings.current_page = self.children.index(node) // settings.limit + 1

    # --- Health chunk traversals ---

    def update_health_chunk_query_recursively(
        self, description: ClusterHealthChunkQueryDescription
    ) -> None:
        """Let the owning node and every expanded node below it add itself to ``description``.

        A node takes part only while its own group is expanded.
        """
        if not self._is_expanded:
            return

        if self.owning_node is not None:
            self.owning_node.update_health_chunk_query_description(description)
        for child in self.children:
            child.child_group.update_health_chunk_query_recursively(description)

    async def update_data_model_from_health_chunk_recursively(
        self, chunk: ClusterHealthChunk
    ) -> None:
        """Merge ``chunk`` into the owning node, then into the expanded groups below."""
        if not self._is_expanded:
            return

        if self.owning_node is not None:
            await self.owning_node.merge_cluster_health_state_chunk(chunk)
        await _join(
            child.child_group.update_data_model_from_health_chunk_recursively(chunk)
            for child in list(self.children)
        )

    # --- Reconciliation ---

    async def refresh_expanded_children_recursively(self) -> None:
        """Bring the expanded part of this subtree up to date with the backend.

        Nodes that still exist are updated in place, so their expansion state,
        selection and loaded children survive. Collapsed groups are skipped.
        """
        if self.children_query is None or not self._is_expanded:
            return

        # A first load still in flight would overwrite this pass when it lands.
        if self._current_get_children is not None:
            await asyncio.shield(self._current_get_children)

        response = await self.children_query()
        children = self.children
        response_ids = {r.node_id for r in response if r.node_id}

        for node in list(children):
            if not node.node_id:
                continue
            if node.node_id not in response_ids:
                self._release_selection(node)
                children.remove(node)

        # Nodes inserted below get refreshed on their own next cycle.
        children_to_refresh = list(children)

        existing = {n.node_id: n for n in children if n.node_id}
        new_records: list[TreeNodeRecord] = []
        resort = False
        for record in response:
            if not record.node_id:
                logger.warning(
                    "Skipping child record without identity key: {!r}", record.display_name
                )
                continue
            node = existing.get(record.node_id)
            if node is None:
                new_records.append(record)
                continue
            before = node.sort_by()
            node.update(record)
            resort = resort or node.sort_by() != before

        if resort:
            children.sort(key=_sort_key)

        new_nodes: list["TreeNodeViewModel"] = []
        for record in new_records:
            if record.node_id in existing:
                existing[record.node_id].update(record)
                continue
            node = self._new_node(record)
            children.insert(bisect.bisect_left(children, node.sort_by(), key=_sort_key), node)
            existing[record.node_id] = node
            new_nodes.append(node)

        self.children_loaded = True
        self._update_list_count()

        await _join(
            child.child_group.refresh_expanded_children_recursively()
            for child in children_to_refresh
        )
        await self._load_start_expanded(new_nodes)

    # --- Search ---

    async def search_through_children_recursively(self, search_term: str) -> None:
        """Refetch this subtree and keep only branches leading to a match.

        A node survives when its display name contains ``search_term`` or
        when, after its own subtree was searched, it still has children.
        """
        if self.children_query is None or not self.is_children_support_search:
            return

        self.loading_children = True
        try:
            response = await self.children_query()
            candidates: list["TreeNodeViewModel"] = []
            for record in response:
                if not record.is_children_support_search and search_term not in record.display_name:
                    continue
                candidates.append(
                    self._new_node(record, start_expanded=record.is_children_support_search)
                )

            self._replace_children(sorted(candidates, key=_sort_key))
            self.children_loaded = True

            await _join(
                child.child_group.search_through_children_recursively(search_term)
                for child in candidates
            )

            self._replace_children(
                [
                    child
                    for child in self.children
                    if search_term in child.display_name or child.child_group.children
                ]
            )
        finally:
            self._update_list_count()
            self.loading_children = False

    # --- Helpers ---

    def _new_node(
        self, record: TreeNodeRecord, *, start_expanded: bool | None = None
    ) -> "TreeNodeViewModel":
        from fabric_tree.core.tree.node import TreeNodeViewModel

        return TreeNodeViewModel(self._tree, record, self.owning_node, start_expanded=start_expanded)

    def _replace_children(self, children: list["TreeNodeViewModel"]) -> None:
        kept = {id(c) for c in children}
        for node in self.children:
            if id(node) not in kept:
                self._release_selection(node)
        self.children = children

    def _release_selection(self, node: "TreeNodeViewModel") -> None:
        """Move the selection off ``node`` before it leaves the tree."""
        selected = self._tree.selected_node
        if selected is None or not (node is selected or node.is_parent_of(selected)):
            return
        if node.parent is not None:
            node.parent.select()
        else:
            self._tree.clear_selection()
        logger.debug("Selection moved off removed node {!r}", node.display_name)

    def _update_list_count(self) -> None:
        if self.owning_node is not None and self.owning_node.list_settings is not None:
            self.owning_node.list_settings.count = len(self.children)
