# ABOUTME: Makes the shared common package importable across the graph engine and scripts.
# ABOUTME: Re-exports record shapes, the canonical step event, and the record normalizer.

from .schemas import (
    OutcomeCategory,
    PathAnalysisRecord,
    Record,
    StateKey,
    StepEvent,
    TutoringLogRecord,
)
from .data_pipeline import load_records, normalize_records, records_from_frame, records_from_rows

__all__ = [
    "OutcomeCategory",
    "PathAnalysisRecord",
    "Record",
    "StateKey",
    "StepEvent",
    "TutoringLogRecord",
    "load_records",
    "normalize_records",
    "records_from_frame",
    "records_from_rows",
]
