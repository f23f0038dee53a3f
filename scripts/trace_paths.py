# ABOUTME: Provides a CLI that narrates individual student paths through the step-transition graph.
# ABOUTME: Prints per-state node info the way the graph's node panel presents it.

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from src.common.data_pipeline import load_records, normalize_records
from src.path_graph.builder import build_graph
from src.path_graph.transitions import count_transitions, student_paths

console = Console()
app = typer.Typer(help="Inspect student paths and state statistics of a tutoring export.")


def _load_events(input_path: Path, shape: str, delimiter: str):
    if not input_path.exists():
        console.print(f"[red]Missing input file at {input_path}[/red]")
        raise typer.Exit(code=1)
    try:
        records = load_records(input_path, shape, delimiter=delimiter)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--shape") from exc
    return normalize_records(records)


@app.command("student-path")
def student_path(
    student_id: str = typer.Option(..., "--student-id", help="Owning entity whose path to print."),
    input_path: Path = typer.Option(..., "--input", help="Delimited tutoring export."),
    shape: str = typer.Option("tutoring", "--shape", help="Record shape: tutoring or path_analysis."),
    delimiter: str = typer.Option("\t", "--delimiter", help="Column delimiter of the export."),
) -> None:
    """
    Print the ordered states a student visited with the volume of each transition taken.
    """
    events = _load_events(input_path, shape, delimiter)
    counts = count_transitions(events)
    path = student_paths(events).get(student_id)
    if not path:
        console.print(f"[yellow]No records for {student_id}[/yellow]")
        raise typer.Exit(code=1)

    console.rule(f"[bold blue]Path of {student_id}[/bold blue]")
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Step", justify="right")
    table.add_column("State")
    table.add_column("Students taking this move", justify="right")
    for position, state in enumerate(path, start=1):
        nxt = path[position] if position < len(path) else None
        volume = str(counts.count(state, nxt)) if nxt is not None else "-"
        table.add_row(str(position), state.label or state.node_id, volume)
    console.print(table)


@app.command("node-info")
def node_info(
    node_id: str = typer.Option(..., "--node-id", help="Exported node id to describe."),
    input_path: Path = typer.Option(..., "--input", help="Delimited tutoring export."),
    shape: str = typer.Option("tutoring", "--shape", help="Record shape: tutoring or path_analysis."),
    delimiter: str = typer.Option("\t", "--delimiter", help="Column delimiter of the export."),
) -> None:
    """
    Show the aggregated statistics of one state.
    """
    events = _load_events(input_path, shape, delimiter)
    graph = build_graph(events)
    matches = [node for node in graph.nodes if node.id == node_id]
    if not matches:
        console.print(f"[red]Unknown node {node_id}[/red]")
        raise typer.Exit(code=1)
    node = matches[0]

    console.print("[bold]Node Info[/bold]")
    console.print(f"  Node ID: {node.id}")
    if node.problem_id:
        console.print(f"  Problem ID: {node.problem_id}")
    console.print(f"  Self Loops: {node.self_loops}")
    console.print(f"  Cumulative Self Loops: {node.cumulative_self_loops}")
    console.print(f"  Edges In: {node.edges_in}")
    console.print(f"  Edges Out: {node.edges_out}")
    console.print(f"  Students entering: {node.cumulative_edges_in}")
    console.print(f"  Students leaving: {node.cumulative_edges_out}")
    console.print(f"  Average Step Rank: {node.rank:.1f}")
    console.print(f"  Times Errored: {node.times_errored}")


if __name__ == "__main__":
    app()
