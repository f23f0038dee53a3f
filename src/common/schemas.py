# ABOUTME: Defines the record shapes accepted from tutoring exports and the canonical step event.
# ABOUTME: Centralizes composite state keys and outcome categories shared by the graph engine.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple, Union


class OutcomeCategory(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    HINT = "hint"
    OTHER = "other"


OUTCOME_CATEGORIES = {
    "OK": OutcomeCategory.SUCCESS,
    "CORRECT": OutcomeCategory.SUCCESS,
    "ERROR": OutcomeCategory.ERROR,
    "BUG": OutcomeCategory.ERROR,
    "INITIAL_HINT": OutcomeCategory.HINT,
    "HINT_LEVEL_CHANGE": OutcomeCategory.HINT,
}


def categorize_outcome(outcome: Optional[str]) -> OutcomeCategory:
    if outcome is None:
        return OutcomeCategory.OTHER
    return OUTCOME_CATEGORIES.get(str(outcome).strip().upper(), OutcomeCategory.OTHER)


def _escape_part(part: str) -> str:
    return part.replace("\\", "\\\\").replace("-", "\\-")


@dataclass(frozen=True)
class StateKey:
    """
    Composite identifier of a problem-solving state.

    Equality and hashing use the ``parts`` tuple only, so two states never
    collide because a field happens to contain a separator character.
    """

    parts: Tuple[str, ...]
    label: str = field(default="", compare=False)

    @property
    def node_id(self) -> str:
        if len(self.parts) == 1:
            return self.parts[0]
        return "-".join(_escape_part(part) for part in self.parts)

    def __str__(self) -> str:
        return self.node_id


@dataclass(frozen=True)
class TutoringLogRecord:
    """One row of a DataShop-style tutoring export, keyed by problem and step name."""

    student_id: str
    time: Optional[str]
    problem_name: str
    step_name: Optional[str]
    outcome: str
    session_id: Optional[str] = None
    selection: Optional[str] = None
    action: Optional[str] = None
    help_level: Optional[str] = None
    attempt_at_step: Optional[str] = None


@dataclass(frozen=True)
class PathAnalysisRecord:
    """Path-analysis row with explicit goal-node transitions; counters arrive as strings."""

    section_id: str
    problem_id: str
    ct_context_id: str
    tutor_goalnode_id: str
    next_tutor_goalnode_id: Optional[str]
    current_step: Optional[str]
    max_step: Optional[str]
    evaluation: str
    input: Optional[str] = None
    attempt: Optional[str] = None
    is_autofil: Optional[str] = None
    current_time: Optional[str] = None
    total_time: Optional[str] = None


Record = Union[TutoringLogRecord, PathAnalysisRecord]


@dataclass(frozen=True)
class StepEvent:
    """Canonical interaction consumed by the transition counter and graph builder."""

    owner_id: str
    state: StateKey
    next_state: Optional[StateKey]
    outcome: str
    category: OutcomeCategory
    problem_id: Optional[str] = None
    next_problem_id: Optional[str] = None
    step_rank: Optional[float] = None
    timestamp: Optional[datetime] = None

    @property
    def is_error(self) -> bool:
        return self.category is OutcomeCategory.ERROR

    @property
    def is_success(self) -> bool:
        return self.category is OutcomeCategory.SUCCESS


@dataclass(frozen=True)
class PathAnalysisEvent:
    """Typed path-analysis row after numeric and boolean coercion."""

    section_id: str
    problem_id: str
    ct_context_id: str
    tutor_goalnode_id: str
    next_tutor_goalnode_id: Optional[str]
    current_step: Optional[int]
    max_step: Optional[int]
    evaluation: str
    input: Optional[str]
    attempt: Optional[int]
    is_autofil: bool
    current_time: Optional[int]
    total_time: Optional[int]
