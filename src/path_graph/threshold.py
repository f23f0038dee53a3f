# ABOUTME: Filters a built graph by minimum transition count as the display threshold moves.
# ABOUTME: Carries caller-owned filter state so pruned nodes are restored without re-aggregation.

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from src.common.schemas import StateKey

from .graph import Graph, Node
from .mutations import add_unused_nodes, change_link_threshold, remove_unused_nodes

DEFAULT_THRESHOLD_PERCENT = 10.0


@dataclass(frozen=True)
class FilterState:
    """Threshold carry-state owned by the host and passed back on every update."""

    threshold: float = 0.0
    previous_threshold: float = 0.0
    removed_nodes: Tuple[Node, ...] = ()


def initial_filter_state(graph: Graph) -> Tuple[Graph, FilterState]:
    """Start an interactive session showing the full graph."""

    view = Graph(nodes=list(graph.nodes), edges=list(graph.edges), max_transition_count=graph.max_transition_count)
    return view, FilterState()


def threshold_from_percent(percent: float, max_count: int) -> float:
    """Convert a slider percentage into an absolute transition count."""

    if percent < 0 or percent > 100:
        raise ValueError(f"Threshold percent must be within [0, 100], got {percent}.")
    return (percent / 100.0) * max_count


def apply_threshold(graph: Graph, view: Graph, state: FilterState, threshold: float) -> Tuple[Graph, FilterState]:
    """
    Re-filter ``graph`` at ``threshold`` starting from the currently shown ``view``.

    Edges are always recomputed from the full graph. Raising the threshold
    prunes nodes left without edges and remembers them in the returned
    state; lowering it restores endpoints of the returned edges from those
    remembered nodes (falling back to the full graph's nodes). Either way the
    returned view's nodes are exactly the endpoints of its edges.
    """

    if threshold < 0:
        raise ValueError(f"Threshold must be non-negative, got {threshold}.")

    edges = change_link_threshold(graph.edges, threshold)
    remembered: Dict[StateKey, Node] = {node.key: node for node in state.removed_nodes}

    if threshold > state.threshold:
        nodes, removed = remove_unused_nodes(view.nodes, edges)
        nodes = add_unused_nodes(nodes, edges, _restore_pool(graph, remembered))
    else:
        nodes = add_unused_nodes(view.nodes, edges, _restore_pool(graph, remembered))
        nodes, removed = remove_unused_nodes(nodes, edges)

    shown = {node.key for node in nodes}
    for node in removed:
        remembered[node.key] = node
    kept_aside = tuple(node for key, node in remembered.items() if key not in shown)

    new_view = Graph(nodes=nodes, edges=edges, max_transition_count=graph.max_transition_count)
    new_state = FilterState(threshold=threshold, previous_threshold=state.threshold, removed_nodes=kept_aside)
    return new_view, new_state


def sweep_thresholds(graph: Graph, thresholds: Sequence[float]) -> List[Tuple[Graph, FilterState]]:
    """Apply a sequence of thresholds in order, returning every intermediate view."""

    view, state = initial_filter_state(graph)
    results: List[Tuple[Graph, FilterState]] = []
    for value in thresholds:
        view, state = apply_threshold(graph, view, state, value)
        results.append((view, state))
    return results


def _restore_pool(graph: Graph, remembered: Dict[StateKey, Node]) -> List[Node]:
    # Remembered nodes win over full-graph nodes with the same key.
    return list(graph.nodes) + list(remembered.values())
