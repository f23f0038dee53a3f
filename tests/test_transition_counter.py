# ABOUTME: Tests the single-pass transition counter over canonical step events.
# ABOUTME: Covers terminal transitions, error counts, and step-rank averaging.

from src.common.data_pipeline import normalize_records
from src.common.schemas import StateKey
from src.path_graph.transitions import TERMINAL, count_transitions, student_paths

from tests.factories import path_record, path_records, tutoring_record


def _key(name: str) -> StateKey:
    return StateKey(parts=(name,))


def test_counts_each_pair(example_records):
    counts = count_transitions(normalize_records(example_records))

    assert counts.count(_key("A"), _key("B")) == 2
    assert counts.count(_key("B"), _key("C")) == 1
    assert counts.count(_key("C"), _key("A")) == 0
    assert counts.max_count == 2


def test_missing_successor_counts_as_terminal():
    counts = count_transitions(normalize_records(path_records([("A", None, "CORRECT")])))

    assert counts.count(_key("A"), TERMINAL) == 1
    assert counts.max_count == 1


def test_student_boundary_is_terminal_not_an_edge():
    records = [
        tutoring_record("S1", "a"),
        tutoring_record("S1", "b"),
        tutoring_record("S2", "a"),
        tutoring_record("S2", "c"),
    ]
    counts = count_transitions(normalize_records(records))

    b = StateKey(parts=("P", "b"))
    a = StateKey(parts=("P", "a"))
    assert counts.count(b, a) == 0
    assert counts.count(b, TERMINAL) == 1
    assert counts.count(a, b) == 1
    assert counts.count(a, StateKey(parts=("P", "c"))) == 1


def test_error_counts_and_rank_average():
    records = [
        path_record("A", "B", "ERROR", step="1"),
        path_record("A", "B", "ERROR", step="3"),
        path_record("B", None, "CORRECT", step=None),
    ]
    counts = count_transitions(normalize_records(records))

    stats_a = counts.stats(_key("A"))
    assert stats_a.errors == 2
    assert stats_a.average_rank == 2.0
    # No step index observed: rank defaults to zero.
    assert counts.stats(_key("B")).average_rank == 0.0
    assert counts.stats(_key("B")).errors == 0


def test_empty_input_has_no_transitions():
    counts = count_transitions([])
    assert counts.max_count == 0
    assert not counts.transitions


def test_student_paths_keep_visit_order():
    records = [tutoring_record("S1", "a"), tutoring_record("S2", "x"), tutoring_record("S1", "b")]
    paths = student_paths(normalize_records(records))

    assert list(paths) == ["S1", "S2"]
    assert [key.parts[1] for key in paths["S1"]] == ["a", "b"]
