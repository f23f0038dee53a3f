# ABOUTME: Groups the step-transition graph engine.
# ABOUTME: Re-exports the counter, builder, threshold filter, mutation helpers, and exporter.

from .builder import aggregate, build_graph, normalized_width
from .graph import Edge, Graph, Node
from .mutations import (
    add_unused_nodes,
    change_link_threshold,
    remove_error_links_and_store,
    remove_solver_nodes,
    remove_unused_links,
    remove_unused_nodes,
)
from .threshold import FilterState, apply_threshold, initial_filter_state, threshold_from_percent
from .transitions import TERMINAL, TransitionCounts, count_transitions, student_paths
from .export import graph_to_dict, write_graph_json

__all__ = [
    "aggregate",
    "build_graph",
    "normalized_width",
    "Edge",
    "Graph",
    "Node",
    "add_unused_nodes",
    "change_link_threshold",
    "remove_error_links_and_store",
    "remove_solver_nodes",
    "remove_unused_links",
    "remove_unused_nodes",
    "FilterState",
    "apply_threshold",
    "initial_filter_state",
    "threshold_from_percent",
    "TERMINAL",
    "TransitionCounts",
    "count_transitions",
    "student_paths",
    "graph_to_dict",
    "write_graph_json",
]
