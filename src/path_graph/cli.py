# ABOUTME: Provides the Typer CLI that builds step-transition graphs from tutoring exports.
# ABOUTME: Applies threshold, error-edge, and solver-node filters before writing renderer JSON.

from dataclasses import replace
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from src.common.data_pipeline import load_records

from .builder import aggregate
from .config import PathGraphConfig, load_config
from .export import write_graph_json
from .graph import Graph
from .mutations import remove_error_links_and_store, remove_solver_nodes, remove_unused_links, remove_unused_nodes
from .threshold import apply_threshold, initial_filter_state, threshold_from_percent

console = Console()
app = typer.Typer(help="Build weighted step-transition graphs from tutoring interaction logs.")


def prepare_view(
    graph: Graph,
    threshold: float,
    hide_error_links: bool = False,
    strip_solver_nodes: bool = False,
) -> Graph:
    """Filter a full graph the way the interactive view does and return a consistent subgraph."""

    view, state = initial_filter_state(graph)
    view, state = apply_threshold(graph, view, state, threshold)
    nodes, edges = view.nodes, view.edges
    if hide_error_links:
        edges, _ = remove_error_links_and_store(edges)
    if strip_solver_nodes:
        nodes, _ = remove_solver_nodes(nodes)
        _, edges = remove_unused_links(nodes, edges)
    nodes, _ = remove_unused_nodes(nodes, edges)
    return Graph(nodes=nodes, edges=edges, max_transition_count=graph.max_transition_count)


def _resolve_config(
    config: Optional[Path],
    input_path: Optional[Path],
    shape: Optional[str],
    delimiter: Optional[str],
    sort_by_time: Optional[bool],
    ignore_self_loops: Optional[bool],
    threshold_percent: Optional[float],
    hide_error_links: Optional[bool],
    strip_solver_nodes: Optional[bool],
    output: Optional[Path],
) -> PathGraphConfig:
    try:
        cfg = load_config(config) if config is not None else PathGraphConfig()
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc

    overrides = {
        "input_path": input_path,
        "shape": shape.strip().lower() if shape else None,
        "delimiter": "\t" if delimiter == "\\t" else delimiter,
        "sort_by_time": sort_by_time,
        "ignore_self_loops": ignore_self_loops,
        "threshold_percent": threshold_percent,
        "hide_error_links": hide_error_links,
        "strip_solver_nodes": strip_solver_nodes,
        "graph_path": output,
    }
    return replace(cfg, **{name: value for name, value in overrides.items() if value is not None})


def _load_graph(cfg: PathGraphConfig) -> Graph:
    if cfg.input_path is None:
        raise typer.BadParameter("No input file given in --input or data.input_path.", param_hint="--input")
    if not cfg.input_path.exists():
        typer.echo(f"[graph] Missing input file at {cfg.input_path}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"[graph] Reading {cfg.shape} records from {cfg.input_path}")
    try:
        records = load_records(cfg.input_path, cfg.shape, delimiter=cfg.delimiter, sort_by_time=cfg.sort_by_time)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--shape") from exc
    typer.echo(f"[graph] Aggregating {len(records)} records")
    return aggregate(records, ignore_self_loops=cfg.ignore_self_loops)


@app.command()
def build(
    config: Optional[Path] = typer.Option(None, "--config", help="Path to path graph config YAML."),
    input_path: Optional[Path] = typer.Option(None, "--input", help="Delimited tutoring export."),
    shape: Optional[str] = typer.Option(None, "--shape", help="Record shape: tutoring or path_analysis."),
    delimiter: Optional[str] = typer.Option(None, "--delimiter", help="Column delimiter of the export."),
    sort_by_time: Optional[bool] = typer.Option(None, "--sort-by-time/--keep-order", help="Sort rows by owner then time."),
    ignore_self_loops: Optional[bool] = typer.Option(
        None, "--ignore-self-loops/--keep-self-loops", help="Suppress edges from a state to itself."
    ),
    threshold_percent: Optional[float] = typer.Option(None, "--threshold-percent", help="Minimum transitions as % of the busiest edge."),
    hide_error_links: Optional[bool] = typer.Option(None, "--hide-error-links/--show-error-links", help="Drop red edges."),
    strip_solver_nodes: Optional[bool] = typer.Option(None, "--strip-solver/--keep-solver", help="Drop solver goal nodes."),
    output: Optional[Path] = typer.Option(None, "--output", help="Output JSON path for the graph."),
    top: int = typer.Option(10, "--top", help="Number of busiest states to list."),
) -> None:
    """Aggregate an export into a transition graph and write the filtered view as JSON."""

    cfg = _resolve_config(
        config, input_path, shape, delimiter, sort_by_time, ignore_self_loops,
        threshold_percent, hide_error_links, strip_solver_nodes, output,
    )
    graph = _load_graph(cfg)
    typer.echo(
        f"[graph] Full graph: {len(graph.nodes)} nodes, {len(graph.edges)} edges, "
        f"max transitions={graph.max_transition_count}"
    )

    try:
        threshold = threshold_from_percent(cfg.threshold_percent, graph.max_transition_count)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--threshold-percent") from exc
    view = prepare_view(graph, threshold, cfg.hide_error_links, cfg.strip_solver_nodes)
    typer.echo(f"[graph] Threshold {threshold:.2f} keeps {len(view.nodes)} nodes, {len(view.edges)} edges")

    write_graph_json(view, cfg.graph_path)
    typer.echo(f"[graph] Wrote graph to {cfg.graph_path}")
    if view.nodes:
        console.print(_node_table(view, top))


@app.command()
def sweep(
    config: Optional[Path] = typer.Option(None, "--config", help="Path to path graph config YAML."),
    input_path: Optional[Path] = typer.Option(None, "--input", help="Delimited tutoring export."),
    shape: Optional[str] = typer.Option(None, "--shape", help="Record shape: tutoring or path_analysis."),
    delimiter: Optional[str] = typer.Option(None, "--delimiter", help="Column delimiter of the export."),
    ignore_self_loops: Optional[bool] = typer.Option(
        None, "--ignore-self-loops/--keep-self-loops", help="Suppress edges from a state to itself."
    ),
    step: float = typer.Option(10.0, "--step", help="Percent increment between thresholds."),
) -> None:
    """Show how many nodes and edges survive as the threshold rises and falls again."""

    if step <= 0 or step > 100:
        raise typer.BadParameter("Step must be within (0, 100].", param_hint="--step")
    cfg = _resolve_config(config, input_path, shape, delimiter, None, ignore_self_loops, None, None, None, None)
    graph = _load_graph(cfg)

    percents: List[float] = []
    value = 0.0
    while value <= 100.0:
        percents.append(value)
        value += step
    percents = percents + percents[-2::-1]

    table = Table(title="Threshold sweep")
    table.add_column("Percent", justify="right")
    table.add_column("Threshold", justify="right")
    table.add_column("Nodes", justify="right")
    table.add_column("Edges", justify="right")
    table.add_column("Set aside", justify="right")

    view, state = initial_filter_state(graph)
    for percent in percents:
        threshold = threshold_from_percent(percent, graph.max_transition_count)
        view, state = apply_threshold(graph, view, state, threshold)
        table.add_row(
            f"{percent:.0f}%", f"{threshold:.2f}", str(len(view.nodes)), str(len(view.edges)), str(len(state.removed_nodes))
        )
    console.print(table)


def _node_table(graph: Graph, top: int) -> Table:
    table = Table(title="Busiest states")
    table.add_column("State")
    table.add_column("Rank", justify="right")
    table.add_column("Students entering", justify="right")
    table.add_column("Students leaving", justify="right")
    table.add_column("Self loops", justify="right")
    table.add_column("Errors", justify="right")
    busiest = sorted(graph.nodes, key=lambda node: node.cumulative_edges_in, reverse=True)[:top]
    for node in busiest:
        table.add_row(
            node.label,
            f"{node.rank:.1f}",
            str(node.cumulative_edges_in),
            str(node.cumulative_edges_out),
            str(node.self_loops),
            str(node.times_errored),
        )
    return table


def main():
    app()


if __name__ == "__main__":
    main()
