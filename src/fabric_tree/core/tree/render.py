"""Render trees as indented text."""

import io

from fabric_tree.core.tree.group import TreeNodeGroupViewModel
from fabric_tree.core.tree.tree import TreeViewModel
from fabric_tree.models.health import HealthState, UnhealthyEvaluationNode


def _marker(group: TreeNodeGroupViewModel) -> str:
    if group.children_query is None or not group.has_children:
        return "-"
    if group.loading_children:
        return "…"
    return "▾" if group.is_expanded else "▸"


def _render_group(group: TreeNodeGroupViewModel, depth: int, out: io.StringIO) -> None:
    indent = "    " * depth
    for node in group.displayed_children:
        line = f"{indent}{_marker(node.child_group)} {node.display_name}"
        if node.health_state is not HealthState.UNKNOWN:
            line += f" [{node.health_state.value}]"
        if node.is_selected:
            line += "  <"
        out.write(line + "\n")

        child_group = node.child_group
        if child_group.is_expanded:
            _render_group(child_group, depth + 1, out)
            settings = node.list_settings
            if settings is not None and settings.page_count > 1:
                out.write(
                    f"{indent}    ... page {settings.current_page}/{settings.page_count} "
                    f"({settings.count} items)\n"
                )


def render_tree(tree: TreeViewModel) -> str:
    """Render the visible part of a tree: expanded groups, current page only."""
    out = io.StringIO()
    _render_group(tree.child_group, 0, out)
    return out.getvalue()


def render_unhealthy_tree(
    root: UnhealthyEvaluationNode,
    *,
    errors_only: bool = False,
    max_depth: int | None = None,
) -> str:
    """Render an unhealthy evaluation tree.

    Args:
        root: Tree root (rendered at depth 0).
        errors_only: Skip branches with no Error evaluation.
        max_depth: Max levels below the root to include (None = unlimited).
    """
    out = io.StringIO()

    def walk(node: UnhealthyEvaluationNode, depth: int) -> None:
        evaluation = node.health_evaluation
        indent = "    " * depth
        line = f"{indent}- {evaluation.kind}"
        if evaluation.tree_name and evaluation.tree_name != evaluation.kind:
            line += f" {evaluation.tree_name}"
        line += f" [{evaluation.health_state.value}]"
        if evaluation.view_path_url:
            line += f"  {evaluation.view_path_url}"
        out.write(line + "\n")
        if evaluation.description:
            for desc_line in evaluation.description.splitlines():
                out.write(f"{indent}  > {desc_line}\n")

        children = [c for c in node.children if c.contains_error_in_path or not errors_only]
        if max_depth is not None and depth >= max_depth:
            if children:
                noun = "evaluation" if len(children) == 1 else "evaluations"
                out.write(f"{indent}    - ... ({len(children)} more {noun})\n")
            return
        for child in children:
            walk(child, depth + 1)

    walk(root, 0)
    return out.getvalue()
