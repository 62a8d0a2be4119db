"""CLI for fabric-tree (health evaluation trees, topology snapshots)."""

import asyncio
import json
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger

from fabric_tree.config import resolve_base_url
from fabric_tree.core.health.tree import build_unhealthy_evaluation_tree
from fabric_tree.core.importer.health_reader import parse_cluster_health_chunk
from fabric_tree.core.importer.snapshot_reader import load_snapshot
from fabric_tree.core.tree.render import render_tree, render_unhealthy_tree
from fabric_tree.core.tree.tree import TreeViewModel
from fabric_tree.logging_config import configure_logging
from fabric_tree.models.health import ClusterHealthChunk, UnhealthyEvaluationNode
from fabric_tree.routes import ApplicationDirectory, Routes

app = typer.Typer(help="fabric-tree: browse cluster topology and health evaluation trees.")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    configure_logging(verbose=verbose)


def _read_json(path: Path) -> Any:
    """Read a JSON file, exiting with an error if it is missing or invalid."""
    if not path.exists():
        logger.error("File not found: {}", path)
        raise typer.Exit(1)
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.error("Invalid JSON in {}: {}", path, e)
        raise typer.Exit(1) from e


def _parse_app_types(app_types: list[str]) -> ApplicationDirectory:
    directory = ApplicationDirectory()
    for item in app_types:
        name, sep, type_name = item.partition("=")
        if not sep or not name or not type_name:
            logger.error("Expected NAME=TYPE for --app-type, got {!r}", item)
            raise typer.Exit(1)
        directory.add(name, type_name)
    return directory


def _node_to_dict(node: UnhealthyEvaluationNode) -> dict[str, Any]:
    evaluation = node.health_evaluation
    return {
        "kind": evaluation.kind,
        "name": evaluation.tree_name,
        "unique_id": evaluation.unique_id,
        "health_state": evaluation.health_state.value,
        "view_path_url": evaluation.view_path_url,
        "description": evaluation.description,
        "total_child_count": node.total_child_count,
        "contains_error_in_path": node.contains_error_in_path,
        "children": [_node_to_dict(c) for c in node.children],
    }


@app.command()
def health(
    payload_file: Path = typer.Argument(..., help="JSON file with an entity health payload"),
    app_types: Annotated[
        list[str] | None,
        typer.Option("--app-type", "-a", help="Application type as NAME=TYPE (repeatable)"),
    ] = None,
    base_url: Annotated[
        str | None,
        typer.Option("--base-url", "-b", help="URL of the entity page the payload belongs to"),
    ] = None,
    errors_only: bool = typer.Option(False, "--errors-only", "-e", help="Only Error branches"),
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", "-m", help="Max depth levels to render"),
    ] = None,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Show the unhealthy evaluation tree of a health payload."""
    payload = _read_json(payload_file)
    apps = _parse_app_types(app_types or [])

    try:
        root = build_unhealthy_evaluation_tree(
            payload,
            Routes(),
            apps,
            base_url=base_url if base_url is not None else resolve_base_url(),
        )
    except ValueError as e:
        logger.error("Cannot parse health payload {}: {}", payload_file, e)
        raise typer.Exit(1) from e

    if output_json:
        typer.echo(json.dumps(_node_to_dict(root), indent=2))
        return

    typer.echo(
        f"{root.total_child_count} evaluations, "
        f"error in path: {'yes' if root.contains_error_in_path else 'no'}\n"
    )
    typer.echo(render_unhealthy_tree(root, errors_only=errors_only, max_depth=max_depth), nl=False)


async def _browse(
    tree: TreeViewModel,
    *,
    search: str | None,
    expand: int,
    select: list[str],
    chunk: ClusterHealthChunk | None,
) -> None:
    await tree.load()
    if search:
        await tree.search(search)
    else:
        await tree.expand_to_depth(expand)
    if select:
        node = await tree.select_tree_node(select)
        if node is None:
            logger.warning("Path {} not found in snapshot", "/".join(select))
    if chunk is not None:
        description = tree.build_health_chunk_query_description()
        logger.debug("Health chunk query: {}", json.dumps(description.to_raw()))
        await tree.merge_cluster_health_chunk(chunk)


@app.command()
def browse(
    snapshot_file: Path = typer.Argument(..., help="JSON topology snapshot"),
    search: Annotated[
        str | None,
        typer.Option("--search", "-s", help="Only show branches matching this text"),
    ] = None,
    expand: int = typer.Option(0, "--expand", "-x", help="Expand this many levels"),
    select: Annotated[
        str | None,
        typer.Option("--select", help="Select a node by its id path, e.g. apps/app1"),
    ] = None,
    health_chunk_file: Annotated[
        Path | None,
        typer.Option("--health-chunk", "-c", help="Cluster health chunk JSON to merge"),
    ] = None,
) -> None:
    """Load a topology snapshot into a tree and print the visible part."""
    data = _read_json(snapshot_file)
    try:
        query = load_snapshot(data)
        chunk = (
            parse_cluster_health_chunk(_read_json(health_chunk_file))
            if health_chunk_file is not None
            else None
        )
    except (ValueError, KeyError, AttributeError) as e:
        logger.error("Cannot read input: {}", e)
        raise typer.Exit(1) from e

    tree = TreeViewModel(query)
    select_path = [p for p in (select or "").split("/") if p]
    try:
        asyncio.run(_browse(tree, search=search, expand=expand, select=select_path, chunk=chunk))
    except ValueError as e:
        logger.error("Cannot read snapshot {}: {}", snapshot_file, e)
        raise typer.Exit(1) from e

    typer.echo(render_tree(tree), nl=False)
