"""Tests for the recursive search pass and the tree-level search entry points."""

import pytest

from fabric_tree.core.tree.group import TreeNodeGroupViewModel
from fabric_tree.core.tree.tree import TreeViewModel
from fabric_tree.models.node import ListSettings
from tests.unit.fakes import FakeChildrenQuery, record


def _names(group: TreeNodeGroupViewModel) -> list[str]:
    return [c.display_name for c in group.children]


@pytest.fixture
def topology() -> FakeChildrenQuery:
    """Apps (searchable) > web (searchable) > frontend, backend; Apps > db; Other."""
    web = FakeChildrenQuery([record("frontend"), record("backend")])
    db = FakeChildrenQuery([record("frontend-cache")])
    apps = FakeChildrenQuery(
        [record("web", children=web, searchable=True), record("db", children=db)]
    )
    return FakeChildrenQuery([record("Apps", children=apps, searchable=True), record("Other")])


@pytest.mark.asyncio
async def test_search_keeps_only_matching_names() -> None:
    tree = TreeViewModel(
        FakeChildrenQuery([record("Alpha"), record("Beta"), record("AlphaBeta")])
    )
    await tree.search("Alpha")
    assert set(_names(tree.child_group)) == {"Alpha", "AlphaBeta"}


@pytest.mark.asyncio
async def test_search_is_case_sensitive() -> None:
    tree = TreeViewModel(FakeChildrenQuery([record("Alpha"), record("alpha")]))
    await tree.search("alpha")
    assert _names(tree.child_group) == ["alpha"]


@pytest.mark.asyncio
async def test_search_descends_through_searchable_branches(topology: FakeChildrenQuery) -> None:
    tree = TreeViewModel(topology)
    await tree.search("front")

    assert _names(tree.child_group) == ["Apps"]
    apps = tree.child_group.children[0]
    assert apps.child_group.is_expanded is True
    assert _names(apps.child_group) == ["web"]
    web = apps.child_group.children[0]
    assert web.child_group.is_expanded is True
    assert _names(web.child_group) == ["frontend"]


@pytest.mark.asyncio
async def test_search_prunes_branches_without_matches(topology: FakeChildrenQuery) -> None:
    tree = TreeViewModel(topology)
    await tree.search("missing")
    assert tree.child_group.children == []
    assert tree.child_group.children_loaded is True


@pytest.mark.asyncio
async def test_search_keeps_matching_searchable_node_without_children(
    topology: FakeChildrenQuery,
) -> None:
    tree = TreeViewModel(topology)
    await tree.search("web")

    apps = tree.child_group.children[0]
    web = apps.child_group.children[0]
    assert web.display_name == "web"
    assert web.child_group.children == []


@pytest.mark.asyncio
async def test_search_always_refetches(topology: FakeChildrenQuery) -> None:
    tree = TreeViewModel(topology)
    await tree.load()
    await tree.search("Other")
    await tree.search("Other")
    assert topology.calls == 3


@pytest.mark.asyncio
async def test_group_without_search_support_is_left_alone() -> None:
    query = FakeChildrenQuery([record("Alpha")])
    tree = TreeViewModel(query)
    group = TreeNodeGroupViewModel(tree, None, query, False)

    await group.search_through_children_recursively("Alpha")

    assert query.calls == 0
    assert group.children_loaded is False


@pytest.mark.asyncio
async def test_search_failure_clears_loading_flag() -> None:
    query = FakeChildrenQuery([record("Alpha")])
    query.error = RuntimeError("search backend down")
    tree = TreeViewModel(query)

    with pytest.raises(RuntimeError, match="search backend down"):
        await tree.search("Alpha")

    assert tree.child_group.loading_children is False
    assert tree.child_group.children_loaded is False


@pytest.mark.asyncio
async def test_search_clears_selection(topology: FakeChildrenQuery) -> None:
    tree = TreeViewModel(topology)
    await tree.load()
    tree.child_group.children[0].select()

    await tree.search("front")

    assert tree.selected_node is None


@pytest.mark.asyncio
async def test_blank_search_restores_lazy_tree(topology: FakeChildrenQuery) -> None:
    tree = TreeViewModel(topology)
    await tree.search("front")
    await tree.search("   ")

    assert tree.search_term == ""
    assert _names(tree.child_group) == ["Apps", "Other"]
    assert tree.child_group.children[0].child_group.is_expanded is False


@pytest.mark.asyncio
async def test_clear_search_reloads_root(topology: FakeChildrenQuery) -> None:
    tree = TreeViewModel(topology)
    await tree.search("front")
    await tree.clear_search()

    assert tree.search_term == ""
    assert tree.child_group.is_expanded is True
    assert _names(tree.child_group) == ["Apps", "Other"]


@pytest.mark.asyncio
async def test_refresh_reruns_active_search() -> None:
    query = FakeChildrenQuery([record("Alpha"), record("Beta")])
    tree = TreeViewModel(query)
    await tree.search("Alpha")

    query.records.append(record("Alpha2"))
    await tree.refresh()

    assert tree.search_term == "Alpha"
    assert _names(tree.child_group) == ["Alpha", "Alpha2"]


@pytest.mark.asyncio
async def test_search_updates_list_count() -> None:
    settings = ListSettings(limit=1)
    inner = FakeChildrenQuery([record("match-1"), record("match-2"), record("other")])
    tree = TreeViewModel(
        FakeChildrenQuery(
            [record("Paged", children=inner, searchable=True, list_settings=settings)]
        )
    )
    await tree.search("match")

    assert settings.count == 2
    assert settings.page_count == 2
