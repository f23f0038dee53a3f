# ABOUTME: Tests renderer JSON export of transition graphs.
# ABOUTME: Ensures links reference node ids and metadata totals add up.

import json
import tempfile
from pathlib import Path

from src.common.schemas import StateKey
from src.path_graph.builder import aggregate
from src.path_graph.export import graph_to_dict, write_graph_json
from src.path_graph.graph import Graph, Node


def test_graph_to_dict_schema(example_records):
    result = graph_to_dict(aggregate(example_records))

    assert {"nodes", "links", "metadata"} <= set(result)
    node_ids = {node["id"] for node in result["nodes"]}
    assert node_ids == {"A", "B", "C"}
    for link in result["links"]:
        assert link["source"] in node_ids
        assert link["target"] in node_ids
    ab = next(link for link in result["links"] if link["source"] == "A")
    assert ab["num_of_transitions"] == 2
    assert ab["width"] == 11
    assert result["metadata"]["max_transition_count"] == 2
    assert result["metadata"]["total_transitions"] == 3


def test_display_metadata_only_when_set():
    node = Node(key=StateKey(parts=("P", "step-1")), label="P-step-1", color="orange")
    payload = graph_to_dict(Graph(nodes=[node]))["nodes"][0]

    assert payload["color"] == "orange"
    assert "fx" not in payload
    assert payload["id"] == "P-step\\-1"


def test_write_graph_json(example_records):
    with tempfile.TemporaryDirectory() as tmp:
        path = write_graph_json(aggregate(example_records), Path(tmp) / "out" / "graph.json")
        data = json.loads(path.read_text(encoding="utf-8"))
    assert len(data["links"]) == 2
