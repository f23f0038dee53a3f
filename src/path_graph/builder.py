# ABOUTME: Materializes unique state nodes and transition edges from canonical step events.
# ABOUTME: Normalizes edge widths against the busiest transition and derives per-node degrees.

from __future__ import annotations

from typing import Dict, Iterable, Optional, Sequence

from src.common.data_pipeline import normalize_records
from src.common.schemas import Record, StateKey, StepEvent

from .graph import (
    DEFAULT_CURVATURE,
    ERROR_COLOR,
    SELF_LOOP_CURVATURE,
    SUCCESS_COLOR,
    Edge,
    EdgeKey,
    Graph,
    Node,
)
from .transitions import TransitionCounts, count_transitions

MIN_WIDTH = 1.0
WIDTH_SCALE = 10.0


def normalized_width(count: int, max_count: int) -> float:
    """Map a transition count linearly onto [1, 11]."""

    denominator = max_count if max_count > 0 else 1
    return (count / denominator) * WIDTH_SCALE + MIN_WIDTH


def build_graph(
    events: Iterable[StepEvent],
    counts: Optional[TransitionCounts] = None,
    ignore_self_loops: bool = False,
) -> Graph:
    """
    Build the deduplicated transition graph for a stream of step events.

    Edge color is taken from the outcome of the first event that creates the
    edge; later observations of the same transition only add to its count.
    Suppressed self-loops still contribute to the transition counts, and so to
    the normalization maximum.
    """

    events = list(events)
    if not events:
        return Graph()
    if counts is None:
        counts = count_transitions(events)
    max_count = counts.max_count

    nodes: Dict[StateKey, Node] = {}
    edges: Dict[EdgeKey, Edge] = {}
    for event in events:
        _ensure_node(nodes, event.state, event.problem_id, counts)
        target = event.next_state
        if target is None or (ignore_self_loops and target == event.state):
            continue
        _ensure_node(nodes, target, event.next_problem_id, counts)
        if (event.state, target) in edges:
            continue
        transitions = counts.count(event.state, target)
        if transitions <= 0:
            raise ValueError(
                f"No transition count for {event.state.node_id} -> {target.node_id}; "
                "counts were not computed from these events."
            )
        edge = Edge(
            source=event.state,
            target=target,
            num_of_transitions=transitions,
            width=normalized_width(transitions, max_count),
            color=SUCCESS_COLOR if event.is_success else ERROR_COLOR,
            curvature=SELF_LOOP_CURVATURE if target == event.state else DEFAULT_CURVATURE,
        )
        edges[edge.key] = edge

    _assign_degrees(nodes, edges.values())
    return Graph(nodes=list(nodes.values()), edges=list(edges.values()), max_transition_count=max_count)


def aggregate(records: Sequence[Record], ignore_self_loops: bool = False) -> Graph:
    """Normalize records, count transitions, and build the graph in one call."""

    events = normalize_records(records)
    return build_graph(events, count_transitions(events), ignore_self_loops=ignore_self_loops)


def _ensure_node(
    nodes: Dict[StateKey, Node], key: StateKey, problem_id: Optional[str], counts: TransitionCounts
) -> Node:
    node = nodes.get(key)
    if node is None:
        stats = counts.stats(key)
        node = Node(
            key=key,
            label=key.label or key.node_id,
            rank=stats.average_rank,
            times_errored=stats.errors,
            problem_id=problem_id,
        )
        nodes[key] = node
    return node


def _assign_degrees(nodes: Dict[StateKey, Node], edges: Iterable[Edge]) -> None:
    for node in nodes.values():
        node.edges_in = node.edges_out = 0
        node.cumulative_edges_in = node.cumulative_edges_out = 0
        node.self_loops = node.cumulative_self_loops = 0
    for edge in edges:
        source = nodes[edge.source]
        target = nodes[edge.target]
        source.edges_out += 1
        source.cumulative_edges_out += edge.num_of_transitions
        target.edges_in += 1
        target.cumulative_edges_in += edge.num_of_transitions
        if edge.is_self_loop:
            source.self_loops += 1
            source.cumulative_self_loops += edge.num_of_transitions
