# ABOUTME: Serializes transition graphs into the node/link JSON consumed by force-directed renderers.
# ABOUTME: Links reference nodes by exported id so the payload carries no object cycles.

import json
from pathlib import Path
from typing import Any, Dict

from .graph import Edge, Graph, Node


def node_to_dict(node: Node) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": node.id,
        "label": node.label,
        "rank": node.rank,
        "times_errored": node.times_errored,
        "problem_id": node.problem_id,
        "edges_in": node.edges_in,
        "edges_out": node.edges_out,
        "cumulative_edges_in": node.cumulative_edges_in,
        "cumulative_edges_out": node.cumulative_edges_out,
        "self_loops": node.self_loops,
        "cumulative_self_loops": node.cumulative_self_loops,
    }
    for name in ("color", "shape", "fx", "fy"):
        value = getattr(node, name)
        if value is not None:
            payload[name] = value
    return payload


def edge_to_dict(edge: Edge) -> Dict[str, Any]:
    return {
        "source": edge.source.node_id,
        "target": edge.target.node_id,
        "num_of_transitions": edge.num_of_transitions,
        "width": edge.width,
        "color": edge.color,
        "curvature": edge.curvature,
    }


def graph_to_dict(graph: Graph) -> Dict[str, Any]:
    """
    Format a graph for the renderer.

    Returns:
        Dict with nodes, links, and metadata (max transition count, totals)
    """

    return {
        "nodes": [node_to_dict(node) for node in graph.nodes],
        "links": [edge_to_dict(edge) for edge in graph.edges],
        "metadata": {
            "max_transition_count": graph.max_transition_count,
            "total_nodes": len(graph.nodes),
            "total_links": len(graph.edges),
            "total_transitions": sum(edge.num_of_transitions for edge in graph.edges),
        },
    }


def write_graph_json(graph: Graph, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(graph_to_dict(graph), indent=2), encoding="utf-8")
    return path
