"""Tests for the fabric-tree CLI."""

import json
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from loguru import logger
from typer.testing import CliRunner

from fabric_tree.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_log_sink() -> Iterator[None]:
    """Point loguru back at the real stderr once the runner has closed its streams."""
    yield
    logger.remove()
    logger.add(sys.stderr)


HEALTH_PAYLOAD = {
    "AggregatedHealthState": "Error",
    "UnhealthyEvaluations": [
        {
            "HealthEvaluation": {
                "Kind": "Application",
                "ApplicationName": "fabric:/Shop",
                "AggregatedHealthState": "Error",
                "UnhealthyEvaluations": [
                    {
                        "HealthEvaluation": {
                            "Kind": "Service",
                            "ServiceName": "fabric:/Shop/Cart",
                            "AggregatedHealthState": "Error",
                        }
                    }
                ],
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

SNAPSHOT = [
    {
        "id": "apps",
        "name": "Applications",
        "searchable": True,
        "children": [
            {
                "id": "shop",
                "name": "Shop",
                "kind": "application",
                "children": [{"id": "cart", "name": "Cart"}, {"id": "web", "name": "Web"}],
            },
            {"id": "blog", "name": "Blog", "kind": "application"},
        ],
    },
    {"id": "nodes", "name": "Nodes", "children": [{"id": "n1", "name": "n1", "kind": "node"}]},
]


def _write(tmp_path: Path, name: str, data: object) -> Path:
    path = tmp_path / name
    path.write_text(json.dumps(data))
    return path


def test_health_prints_tree(tmp_path: Path) -> None:
    payload = _write(tmp_path, "health.json", HEALTH_PAYLOAD)

    result = runner.invoke(app, ["health", str(payload), "--app-type", "Shop=ShopType"])

    assert result.exit_code == 0, result.output
    assert "4 evaluations, error in path: yes" in result.stdout
    assert "- Application Shop [Error]  /apptype/ShopType/app/Shop" in result.stdout
    assert "/apptype/ShopType/app/Shop/service/Shop%252FCart" in result.stdout


def test_health_errors_only(tmp_path: Path) -> None:
    payload = _write(tmp_path, "health.json", HEALTH_PAYLOAD)

    result = runner.invoke(app, ["health", str(payload), "--errors-only"])

    assert result.exit_code == 0, result.output
    assert "Shop" in result.stdout
    assert "Node n1" not in result.stdout


def test_health_json_output(tmp_path: Path) -> None:
    payload = _write(tmp_path, "health.json", HEALTH_PAYLOAD)

    result = runner.invoke(app, ["health", str(payload), "--json", "--base-url", "/cluster"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["kind"] == "Cluster"
    assert data["total_child_count"] == 4
    assert data["contains_error_in_path"] is True
    node = data["children"][1]
    assert node["view_path_url"] == "/node/n1"
    assert node["contains_error_in_path"] is False


def test_health_missing_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["health", str(tmp_path / "missing.json")])
    assert result.exit_code == 1


def test_health_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text("{not json")
    result = runner.invoke(app, ["health", str(path)])
    assert result.exit_code == 1


def test_health_malformed_payload(tmp_path: Path) -> None:
    payload = _write(
        tmp_path, "health.json", {"UnhealthyEvaluations": [{"HealthEvaluation": {"Kind": "Node"}}]}
    )
    result = runner.invoke(app, ["health", str(payload)])
    assert result.exit_code == 1


def test_health_bad_app_type(tmp_path: Path) -> None:
    payload = _write(tmp_path, "health.json", HEALTH_PAYLOAD)
    result = runner.invoke(app, ["health", str(payload), "--app-type", "ShopType"])
    assert result.exit_code == 1


def test_browse_top_level(tmp_path: Path) -> None:
    snapshot = _write(tmp_path, "snapshot.json", SNAPSHOT)

    result = runner.invoke(app, ["browse", str(snapshot)])

    assert result.exit_code == 0, result.output
    assert result.stdout == "▸ Applications\n▸ Nodes\n"


def test_browse_expand(tmp_path: Path) -> None:
    snapshot = _write(tmp_path, "snapshot.json", SNAPSHOT)

    result = runner.invoke(app, ["browse", str(snapshot), "--expand", "1"])

    assert result.exit_code == 0, result.output
    assert "    ▸ Shop\n" in result.stdout
    assert "    - Blog\n" in result.stdout
    assert "    - n1\n" in result.stdout


def test_browse_search(tmp_path: Path) -> None:
    snapshot = _write(tmp_path, "snapshot.json", SNAPSHOT)

    result = runner.invoke(app, ["browse", str(snapshot), "--search", "Blog"])

    assert result.exit_code == 0, result.output
    assert result.stdout == "▾ Applications\n    - Blog\n"


def test_browse_select_and_health_chunk(tmp_path: Path) -> None:
    snapshot = _write(tmp_path, "snapshot.json", SNAPSHOT)
    chunk = _write(
        tmp_path,
        "chunk.json",
        {
            "HealthState": "Warning",
            "ApplicationHealthStateChunks": {
                "Items": [{"ApplicationName": "shop", "HealthState": "Warning"}]
            },
        },
    )

    result = runner.invoke(
        app,
        ["browse", str(snapshot), "--select", "apps/shop/cart", "--health-chunk", str(chunk)],
    )

    assert result.exit_code == 0, result.output
    assert "    ▾ Shop [Warning]\n" in result.stdout
    assert "        - Cart  <\n" in result.stdout


def test_browse_rejects_bad_snapshot(tmp_path: Path) -> None:
    snapshot = _write(tmp_path, "snapshot.json", {"nodes": []})
    result = runner.invoke(app, ["browse", str(snapshot)])
    assert result.exit_code == 1
