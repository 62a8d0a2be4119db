"""Tests for text rendering of tree view-models and evaluation trees."""

import pytest

from fabric_tree.core.health.tree import build_unhealthy_evaluation_tree
from fabric_tree.core.tree.render import render_tree, render_unhealthy_tree
from fabric_tree.core.tree.tree import TreeViewModel
from fabric_tree.models.health import UnhealthyEvaluationNode
from fabric_tree.routes import ApplicationDirectory, Routes


@pytest.mark.asyncio
async def test_render_tree_shows_visible_page(tree: TreeViewModel) -> None:
    await tree.load()
    nodes = tree.child_group.children[1]
    await nodes.child_group.expand()
    nodes.child_group.children[0].select()

    assert render_tree(tree) == (
        "▸ Applications [Ok]\n"
        "▾ Nodes [Ok]\n"
        "    - node1 [Ok]  <\n"
        "    - node2 [Ok]\n"
        "    ... page 1/3 (5 items)\n"
    )


def test_render_empty_tree(tree: TreeViewModel) -> None:
    assert render_tree(tree) == ""


@pytest.fixture
def evaluation_tree() -> UnhealthyEvaluationNode:
    payload = {
        "AggregatedHealthState": "Error",
        "UnhealthyEvaluations": [
            {
                "HealthEvaluation": {
                    "Kind": "Nodes",
                    "AggregatedHealthState": "Error",
                    "Description": "1 of 2 nodes unhealthy\nPolicy: 0%",
                    "UnhealthyEvaluations": [
                        {
                            "HealthEvaluation": {
                                "Kind": "Node",
                                "NodeName": "n0",
                                "AggregatedHealthState": "Error",
                            }
                        },
                        {
                            "HealthEvaluation": {
                                "Kind": "Node",
                                "NodeName": "n1",
                                "AggregatedHealthState": "Warning",
                            }
                        },
                    ],
                }
            },
            {"HealthEvaluation": {"Kind": "Applications", "AggregatedHealthState": "Warning"}},
        ],
    }
    return build_unhealthy_evaluation_tree(payload, Routes(), ApplicationDirectory())


def test_render_unhealthy_tree(evaluation_tree: UnhealthyEvaluationNode) -> None:
    assert render_unhealthy_tree(evaluation_tree) == (
        "- Cluster [Error]\n"
        "    - Nodes [Error]  /nodes\n"
        "      > 1 of 2 nodes unhealthy\n"
        "      > Policy: 0%\n"
        "        - Node n0 [Error]  /node/n0\n"
        "        - Node n1 [Warning]  /node/n1\n"
        "    - Applications applications [Warning]  /apps\n"
    )


def test_render_errors_only(evaluation_tree: UnhealthyEvaluationNode) -> None:
    text = render_unhealthy_tree(evaluation_tree, errors_only=True)
    assert "n0" in text
    assert "n1" not in text
    assert "Applications" not in text


def test_render_max_depth_summarizes_hidden_children(
    evaluation_tree: UnhealthyEvaluationNode,
) -> None:
    text = render_unhealthy_tree(evaluation_tree, max_depth=1)
    assert "        - ... (2 more evaluations)\n" in text
    assert "Node n0" not in text
