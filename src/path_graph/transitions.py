# ABOUTME: Counts state-to-state transitions across all student sequences in one pass.
# ABOUTME: Accumulates per-state error counts and step-rank sums for later averaging.

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from src.common.schemas import StateKey, StepEvent

# Successor of the last step in a sequence. Real keys always have parts.
TERMINAL = StateKey(parts=(), label="END")

TransitionKey = Tuple[StateKey, StateKey]


@dataclass
class StateStats:
    errors: int = 0
    rank_sum: float = 0.0
    rank_count: int = 0

    @property
    def average_rank(self) -> float:
        if self.rank_count == 0:
            return 0.0
        return self.rank_sum / self.rank_count


@dataclass
class TransitionCounts:
    transitions: Counter = field(default_factory=Counter)
    state_stats: Dict[StateKey, StateStats] = field(default_factory=dict)

    @property
    def max_count(self) -> int:
        """Largest transition count, terminal transitions included."""

        if not self.transitions:
            return 0
        return max(self.transitions.values())

    def count(self, source: StateKey, target: StateKey) -> int:
        return self.transitions.get((source, target), 0)

    def stats(self, key: StateKey) -> StateStats:
        return self.state_stats.get(key, StateStats())


def count_transitions(events: Iterable[StepEvent]) -> TransitionCounts:
    """
    Count every (state, next state) pair and gather per-state aggregates.

    Events must already carry their successor (see ``normalize_records``), so
    a sequence boundary between students shows up as a terminal transition
    rather than an edge into another student's first step.
    """

    counts = TransitionCounts()
    for event in events:
        next_key = event.next_state if event.next_state is not None else TERMINAL
        counts.transitions[(event.state, next_key)] += 1

        stats = counts.state_stats.get(event.state)
        if stats is None:
            stats = counts.state_stats[event.state] = StateStats()
        if event.step_rank is not None:
            stats.rank_sum += event.step_rank
            stats.rank_count += 1
        if event.is_error:
            stats.errors += 1
    return counts


def student_paths(events: Iterable[StepEvent]) -> Dict[str, List[StateKey]]:
    """Ordered states visited by each owner, in first-seen owner order."""

    paths: Dict[str, List[StateKey]] = {}
    for event in events:
        paths.setdefault(event.owner_id, []).append(event.state)
    return paths
