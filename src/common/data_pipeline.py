# ABOUTME: Normalizes tutoring exports and path-analysis rows into canonical step events.
# ABOUTME: Loads delimited exports into typed records and links each step to its successor.

import re
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd
import pyarrow as pa
import pyarrow.csv as pv

from .schemas import (
    PathAnalysisEvent,
    PathAnalysisRecord,
    Record,
    StateKey,
    StepEvent,
    TutoringLogRecord,
    categorize_outcome,
)

TUTORING_SHAPE = "tutoring"
PATH_ANALYSIS_SHAPE = "path_analysis"
SHAPES = (TUTORING_SHAPE, PATH_ANALYSIS_SHAPE)

TUTORING_COLUMNS = {
    "student_id": "Anon Student Id",
    "time": "Time",
    "problem_name": "Problem Name",
    "step_name": "Step Name",
    "outcome": "Outcome",
    "session_id": "Session Id",
    "selection": "Selection",
    "action": "Action",
    "help_level": "Help Level",
    "attempt_at_step": "Attempt At Step",
}
TUTORING_REQUIRED = ("student_id", "problem_name", "outcome")

PATH_ANALYSIS_COLUMNS = {
    name: name
    for name in (
        "section_id",
        "problem_id",
        "ct_context_id",
        "tutor_goalnode_id",
        "next_tutor_goalnode_id",
        "current_step",
        "max_step",
        "evaluation",
        "input",
        "attempt",
        "is_autofil",
        "current_time",
        "total_time",
    )
}
PATH_ANALYSIS_REQUIRED = ("ct_context_id", "tutor_goalnode_id", "evaluation")

_LEADING_INT = re.compile(r"^\s*([-+]?\d+)")
LABEL_WORD_LIMIT = 3


def parse_leading_int(value: Optional[str]) -> Optional[int]:
    """Parse the leading integer of a string the way tutoring exports encode counters."""

    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return None if pd.isna(value) else int(value)
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def coerce_path_record(record: PathAnalysisRecord) -> PathAnalysisEvent:
    """Convert the string-typed counters and flags of a path-analysis row."""

    return PathAnalysisEvent(
        section_id=record.section_id,
        problem_id=record.problem_id,
        ct_context_id=record.ct_context_id,
        tutor_goalnode_id=record.tutor_goalnode_id,
        next_tutor_goalnode_id=record.next_tutor_goalnode_id or None,
        current_step=parse_leading_int(record.current_step),
        max_step=parse_leading_int(record.max_step),
        evaluation=record.evaluation,
        input=record.input,
        attempt=parse_leading_int(record.attempt),
        is_autofil=record.is_autofil == "true",
        current_time=parse_leading_int(record.current_time),
        total_time=parse_leading_int(record.total_time),
    )


def goalnode_label(goalnode_id: str) -> str:
    """Shorten a goal-node id to its first few distinct words."""

    words: List[str] = []
    for word in goalnode_id.split("-"):
        if word not in words:
            words.append(word)
    return " ".join(words[:LABEL_WORD_LIMIT]) + "..."


def tutoring_state_key(problem_name: str, step_name: Optional[str]) -> StateKey:
    step = step_name or ""
    key = StateKey(parts=(problem_name, step))
    return replace(key, label=key.node_id if step else problem_name)


def goalnode_state_key(goalnode_id: str) -> StateKey:
    return StateKey(parts=(goalnode_id,), label=goalnode_label(goalnode_id))


def normalize_records(records: Sequence[Record]) -> List[StepEvent]:
    """
    Convert a sequence of records of one shape into canonical step events.

    Tutoring rows carry no explicit successor: the next state is the next row
    of the same student, so rows are partitioned by student id here and the
    last row of every student becomes terminal. Path-analysis rows already name
    their successor. Input order is preserved. Both shapes may not be mixed in
    one call, since their exported node ids share one namespace.
    """

    if len({type(record) for record in records}) > 1:
        raise ValueError("Cannot mix tutoring and path-analysis records in one graph.")
    successors = _tutoring_successors(records)
    positions: Dict[str, int] = {}
    events: List[StepEvent] = []
    for index, record in enumerate(records):
        if isinstance(record, TutoringLogRecord):
            positions[record.student_id] = positions.get(record.student_id, 0) + 1
            events.append(_tutoring_event(record, successors.get(index), positions[record.student_id]))
        elif isinstance(record, PathAnalysisRecord):
            events.append(_path_analysis_event(coerce_path_record(record)))
        else:
            raise ValueError(f"Unsupported record type '{type(record).__name__}'.")
    return events


def _tutoring_successors(records: Sequence[Record]) -> Dict[int, TutoringLogRecord]:
    successors: Dict[int, TutoringLogRecord] = {}
    following: Dict[str, TutoringLogRecord] = {}
    for index in range(len(records) - 1, -1, -1):
        record = records[index]
        if not isinstance(record, TutoringLogRecord):
            continue
        nxt = following.get(record.student_id)
        if nxt is not None:
            successors[index] = nxt
        following[record.student_id] = record
    return successors


def _tutoring_event(record: TutoringLogRecord, successor: Optional[TutoringLogRecord], position: int) -> StepEvent:
    next_state = None
    next_problem = None
    if successor is not None:
        next_state = tutoring_state_key(successor.problem_name, successor.step_name)
        next_problem = successor.problem_name
    return StepEvent(
        owner_id=record.student_id,
        state=tutoring_state_key(record.problem_name, record.step_name),
        next_state=next_state,
        outcome=record.outcome,
        category=categorize_outcome(record.outcome),
        problem_id=record.problem_name,
        next_problem_id=next_problem,
        step_rank=float(position),
        timestamp=_to_datetime(record.time),
    )


def _path_analysis_event(row: PathAnalysisEvent) -> StepEvent:
    next_state = None
    if row.next_tutor_goalnode_id is not None:
        next_state = goalnode_state_key(row.next_tutor_goalnode_id)
    return StepEvent(
        owner_id=row.ct_context_id,
        state=goalnode_state_key(row.tutor_goalnode_id),
        next_state=next_state,
        outcome=row.evaluation,
        category=categorize_outcome(row.evaluation),
        problem_id=row.problem_id,
        next_problem_id=row.problem_id,
        step_rank=None if row.current_step is None else float(row.current_step),
    )


def _to_datetime(value: Optional[str]):
    if value is None:
        return None
    parsed = pd.to_datetime(value, utc=True, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def records_from_rows(rows: Iterable[Mapping[str, object]], shape: str) -> List[Record]:
    """Build typed records from dict rows using the export's column names."""

    normalized = _check_shape(shape)
    if normalized == TUTORING_SHAPE:
        columns, required, factory = TUTORING_COLUMNS, TUTORING_REQUIRED, TutoringLogRecord
    else:
        columns, required, factory = PATH_ANALYSIS_COLUMNS, PATH_ANALYSIS_REQUIRED, PathAnalysisRecord

    records: List[Record] = []
    for row_number, row in enumerate(rows):
        values = {field_name: _clean(row.get(column)) for field_name, column in columns.items()}
        missing = [columns[name] for name in required if values[name] is None]
        if missing:
            raise ValueError(f"Row {row_number} is missing required column(s): {', '.join(missing)}.")
        records.append(factory(**values))
    return records


def records_from_frame(frame: pd.DataFrame, shape: str) -> List[Record]:
    """Convert a string-typed frame (one export row per line) into typed records."""

    normalized = _check_shape(shape)
    columns = TUTORING_COLUMNS if normalized == TUTORING_SHAPE else PATH_ANALYSIS_COLUMNS
    required = TUTORING_REQUIRED if normalized == TUTORING_SHAPE else PATH_ANALYSIS_REQUIRED
    absent = [columns[name] for name in required if columns[name] not in frame.columns]
    if absent:
        raise ValueError(f"Missing required column(s) for shape '{normalized}': {', '.join(absent)}.")
    return records_from_rows(frame.to_dict(orient="records"), normalized)


def load_records(path: Path, shape: str, delimiter: str = "\t", sort_by_time: bool = False) -> List[Record]:
    """
    Read a delimited export with every column kept as text.

    ``sort_by_time`` applies a stable sort by owner then time for exports that
    are not already grouped; otherwise file order is trusted.
    """

    normalized = _check_shape(shape)
    parse_options = pv.ParseOptions(delimiter=delimiter)
    # Column names as pyarrow parses them (quotes and BOM removed).
    with open(path, "rb") as handle:
        header = pv.open_csv(handle, parse_options=parse_options).schema.names
    convert_options = pv.ConvertOptions(
        column_types={name: pa.string() for name in header},
        strings_can_be_null=True,
    )
    table = pv.read_csv(
        path,
        parse_options=parse_options,
        convert_options=convert_options,
        read_options=pv.ReadOptions(block_size=1 << 22),
    )
    frame = table.to_pandas()
    if sort_by_time:
        frame = _sort_frame(frame, normalized)
    return records_from_frame(frame, normalized)


def _sort_frame(frame: pd.DataFrame, shape: str) -> pd.DataFrame:
    if shape == TUTORING_SHAPE:
        owner, time_column = TUTORING_COLUMNS["student_id"], TUTORING_COLUMNS["time"]
    else:
        owner, time_column = "ct_context_id", "current_time"
    if time_column not in frame.columns:
        return frame.sort_values([owner], kind="mergesort").reset_index(drop=True)
    if shape == TUTORING_SHAPE:
        order = pd.to_datetime(frame[time_column], utc=True, errors="coerce")
    else:
        order = pd.to_numeric(frame[time_column].map(parse_leading_int), errors="coerce")
    frame = frame.assign(_order=order)
    frame = frame.sort_values([owner, "_order"], kind="mergesort").reset_index(drop=True)
    return frame.drop(columns=["_order"])


def _check_shape(shape: str) -> str:
    normalized = shape.strip().lower()
    if normalized not in SHAPES:
        raise ValueError(f"Unsupported record shape '{shape}'. Expected one of: {', '.join(SHAPES)}.")
    return normalized


def _clean(value: object) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    if value is pd.NA:
        return None
    return str(value)
