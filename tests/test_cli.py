# ABOUTME: Exercises the graph CLI end to end on a small tutoring export.
# ABOUTME: Verifies JSON output, threshold filtering, and parameter errors.

import json
import tempfile
import unittest
from pathlib import Path

from typer.testing import CliRunner

from src.path_graph.builder import aggregate
from src.path_graph.cli import app, prepare_view

from tests.factories import path_records

EXPORT = (
    "Anon Student Id\tTime\tProblem Name\tStep Name\tOutcome\n"
    "S1\t2019-09-12 10:00:00\tP1\ta\tOK\n"
    "S1\t2019-09-12 10:00:05\tP1\tb\tOK\n"
    "S1\t2019-09-12 10:00:09\tP1\tc\tERROR\n"
    "S2\t2019-09-12 11:00:00\tP1\ta\tOK\n"
    "S2\t2019-09-12 11:00:05\tP1\tb\tOK\n"
)


class GraphCliTest(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmpdir.name)
        self.export = self.root / "export.tsv"
        self.export.write_text(EXPORT, encoding="utf-8")
        self.runner = CliRunner()

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def test_build_writes_full_graph_at_zero_percent(self) -> None:
        output = self.root / "graph.json"
        result = self.runner.invoke(
            app, ["build", "--input", str(self.export), "--output", str(output), "--threshold-percent", "0"]
        )

        self.assertEqual(0, result.exit_code, result.output)
        data = json.loads(output.read_text(encoding="utf-8"))
        self.assertEqual(3, len(data["nodes"]))
        self.assertEqual(2, len(data["links"]))
        self.assertEqual(2, data["metadata"]["max_transition_count"])
        self.assertIn("[graph] Wrote graph", result.output)

    def test_build_prunes_below_threshold(self) -> None:
        output = self.root / "graph.json"
        result = self.runner.invoke(
            app, ["build", "--input", str(self.export), "--output", str(output), "--threshold-percent", "100"]
        )

        self.assertEqual(0, result.exit_code, result.output)
        data = json.loads(output.read_text(encoding="utf-8"))
        self.assertEqual([("P1-a", "P1-b")], [(link["source"], link["target"]) for link in data["links"]])
        self.assertEqual({"P1-a", "P1-b"}, {node["id"] for node in data["nodes"]})

    def test_build_uses_config_file(self) -> None:
        output = self.root / "from_config.json"
        config = self.root / "graph.yaml"
        config.write_text(
            f"data:\n  input_path: {self.export}\ngraph:\n  threshold_percent: 0\noutput:\n  graph_path: {output}\n",
            encoding="utf-8",
        )
        result = self.runner.invoke(app, ["build", "--config", str(config)])

        self.assertEqual(0, result.exit_code, result.output)
        self.assertTrue(output.exists())

    def test_missing_input_exits(self) -> None:
        result = self.runner.invoke(app, ["build", "--input", str(self.root / "nope.tsv")])
        self.assertEqual(1, result.exit_code)

    def test_unknown_shape_is_bad_parameter(self) -> None:
        result = self.runner.invoke(app, ["build", "--input", str(self.export), "--shape", "sankey"])
        self.assertEqual(2, result.exit_code)

    def test_out_of_range_percent_is_bad_parameter(self) -> None:
        result = self.runner.invoke(app, ["build", "--input", str(self.export), "--threshold-percent", "150"])
        self.assertEqual(2, result.exit_code)
        self.assertNotIsInstance(result.exception, ValueError)

    def test_sweep_prints_table(self) -> None:
        result = self.runner.invoke(app, ["sweep", "--input", str(self.export), "--step", "50"])
        self.assertEqual(0, result.exit_code, result.output)
        self.assertIn("Threshold sweep", result.output)


def test_prepare_view_hides_errors_and_solver_nodes():
    graph = aggregate(
        path_records(
            [
                ("start", "solver-1", "CORRECT"),
                ("start", "aux-solver", "CORRECT"),
                ("aux-solver", "end", "ERROR"),
                ("start", "end", "CORRECT"),
            ]
        )
    )
    view = prepare_view(graph, threshold=0, hide_error_links=True, strip_solver_nodes=True)

    edges = {(edge.source.node_id, edge.target.node_id) for edge in view.edges}
    assert edges == {("start", "aux-solver"), ("start", "end")}
    assert {node.id for node in view.nodes} == {"start", "aux-solver", "end"}
    assert view.is_consistent()
