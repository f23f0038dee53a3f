# ABOUTME: Declares the node, edge, and graph value types produced by the aggregation engine.
# ABOUTME: Nodes and edges reference each other by state key, never by object link.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from src.common.schemas import StateKey

EdgeKey = Tuple[StateKey, StateKey]

SUCCESS_COLOR = "green"
ERROR_COLOR = "red"
AUX_COLOR = "orange"
SELF_LOOP_CURVATURE = 2.0
DEFAULT_CURVATURE = 0.1


@dataclass
class Node:
    """A unique state in the students' solution paths."""

    key: StateKey
    label: str
    rank: float = 0.0
    times_errored: int = 0
    problem_id: Optional[str] = None
    edges_in: int = 0
    edges_out: int = 0
    cumulative_edges_in: int = 0
    cumulative_edges_out: int = 0
    self_loops: int = 0
    cumulative_self_loops: int = 0
    # Display metadata, owned by the renderer.
    color: Optional[str] = None
    shape: Optional[str] = None
    fx: Optional[float] = None
    fy: Optional[float] = None

    @property
    def id(self) -> str:
        return self.key.node_id


@dataclass
class Edge:
    """A unique observed transition between two states."""

    source: StateKey
    target: StateKey
    num_of_transitions: int
    width: float
    color: str
    curvature: float = DEFAULT_CURVATURE

    @property
    def key(self) -> EdgeKey:
        return (self.source, self.target)

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target


@dataclass
class Graph:
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    max_transition_count: int = 0

    def node(self, key: StateKey) -> Node:
        for node in self.nodes:
            if node.key == key:
                return node
        raise KeyError(key.node_id)

    def edge(self, source: StateKey, target: StateKey) -> Edge:
        for edge in self.edges:
            if edge.source == source and edge.target == target:
                return edge
        raise KeyError(f"{source.node_id} -> {target.node_id}")

    def node_keys(self) -> Set[StateKey]:
        return {node.key for node in self.nodes}

    def endpoint_keys(self) -> Set[StateKey]:
        return endpoint_keys(self.edges)

    def is_consistent(self) -> bool:
        """Every edge endpoint is a node of the graph."""

        return self.endpoint_keys() <= self.node_keys()

    @property
    def is_empty(self) -> bool:
        return not self.nodes and not self.edges


def endpoint_keys(edges: Iterable[Edge]) -> Set[StateKey]:
    keys: Set[StateKey] = set()
    for edge in edges:
        keys.add(edge.source)
        keys.add(edge.target)
    return keys


def index_nodes(nodes: Iterable[Node]) -> Dict[StateKey, Node]:
    return {node.key: node for node in nodes}
