"""Raw tree records and per-node list settings."""

import math
from dataclasses import dataclass
from typing import Any

from fabric_tree.config import resolve_page_size
from fabric_tree.models.health import HealthState
from fabric_tree.protocols import ChildrenQuery, HealthChunkMerger, HealthChunkQueryContributor


class ListSettings:
    """Paging window over a node's children.

    ``count`` is kept up to date by the owning group; assigning it clamps
    ``current_page`` so the window never points past the last page.
    """

    def __init__(self, *, limit: int | None = None, current_page: int = 1, count: int = 0) -> None:
        self.limit = limit if limit is not None else resolve_page_size()
        if self.limit < 1:
            msg = f"List limit must be positive, got {self.limit!r}"
            raise ValueError(msg)
        self.current_page = current_page
        self._count = 0
        self.count = count

    def __repr__(self) -> str:
        return (
            f"ListSettings(limit={self.limit!r}, current_page={self.current_page!r}, "
            f"count={self._count!r})"
        )

    @property
    def count(self) -> int:
        return self._count

    @count.setter
    def count(self, value: int) -> None:
        self._count = value
        self.current_page = min(max(self.current_page, 1), self.page_count)

    @property
    def begin(self) -> int:
        return (self.current_page - 1) * self.limit

    @property
    def page_count(self) -> int:
        return max(1, math.ceil(self._count / self.limit))


@dataclass
class TreeNodeRecord:
    """A raw child record as returned by a children query."""

    display_name: str
    node_id: str | None = None
    sort_key: tuple[Any, ...] = ()
    children_query: ChildrenQuery | None = None
    is_children_support_search: bool = False
    start_expanded: bool = False
    list_settings: ListSettings | None = None
    health_state: HealthState = HealthState.UNKNOWN
    update_health_chunk_query_description: HealthChunkQueryContributor | None = None
    merge_cluster_health_state_chunk: HealthChunkMerger | None = None
