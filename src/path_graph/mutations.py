# ABOUTME: Set-based helpers that prune or restore nodes and edges of a built graph.
# ABOUTME: Covers threshold filtering, error-edge partitioning, and solver-node stripping.

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from .graph import AUX_COLOR, ERROR_COLOR, Edge, Node, endpoint_keys, index_nodes

AUX_MARKER = "aux"
SOLVER_MARKER = "solver"


def change_link_threshold(edges: Sequence[Edge], threshold: float) -> List[Edge]:
    """Keep edges observed at least ``threshold`` times; 0 keeps everything."""

    if threshold == 0:
        return list(edges)
    return [edge for edge in edges if edge.num_of_transitions >= threshold]


def remove_unused_nodes(nodes: Sequence[Node], edges: Iterable[Edge]) -> Tuple[List[Node], List[Node]]:
    """Split nodes into (referenced by an edge, orphaned)."""

    used = endpoint_keys(edges)
    kept = [node for node in nodes if node.key in used]
    removed = [node for node in nodes if node.key not in used]
    return kept, removed


def add_unused_nodes(nodes: Sequence[Node], edges: Iterable[Edge], pool: Iterable[Node]) -> List[Node]:
    """
    Append every edge endpoint missing from ``nodes``.

    Restored nodes come from ``pool`` (earlier-removed or full-graph nodes);
    an endpoint absent from the pool raises ``KeyError`` instead of being
    fabricated.
    """

    present = {node.key for node in nodes}
    available = index_nodes(pool)
    restored: List[Node] = list(nodes)
    for edge in edges:
        for key in (edge.source, edge.target):
            if key in present:
                continue
            restored.append(available[key])
            present.add(key)
    return restored


def remove_unused_links(nodes: Iterable[Node], edges: Sequence[Edge]) -> Tuple[List[Edge], List[Edge]]:
    """Return (all edges, edges whose endpoints both survive in ``nodes``)."""

    keys = {node.key for node in nodes}
    old_links = list(edges)
    new_links = [edge for edge in edges if edge.source in keys and edge.target in keys]
    return old_links, new_links


def remove_error_links_and_store(edges: Sequence[Edge]) -> Tuple[List[Edge], List[Edge]]:
    """Partition edges into (non-error, error) by their outcome color."""

    without_errors = [edge for edge in edges if edge.color != ERROR_COLOR]
    error_links = [edge for edge in edges if edge.color == ERROR_COLOR]
    return without_errors, error_links


def remove_solver_nodes(nodes: Sequence[Node]) -> Tuple[List[Node], List[Node]]:
    """
    Recolor auxiliary nodes and drop solver nodes that are not auxiliary.

    Matching is by id substring only; edges are left untouched, so callers
    needing a consistent subgraph follow up with ``remove_unused_links``.
    """

    for node in nodes:
        if AUX_MARKER in node.id:
            node.color = AUX_COLOR
    solver_nodes = [node for node in nodes if SOLVER_MARKER in node.id and AUX_MARKER not in node.id]
    without_solver = [node for node in nodes if SOLVER_MARKER not in node.id or AUX_MARKER in node.id]
    return without_solver, solver_nodes
