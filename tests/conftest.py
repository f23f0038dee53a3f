# ABOUTME: Shared fixtures for the graph engine tests.
# ABOUTME: Provides the three-record example used across counter, builder, and filter tests.

from typing import List

import pytest

from src.common.schemas import PathAnalysisRecord

from tests.factories import path_records


@pytest.fixture
def example_records() -> List[PathAnalysisRecord]:
    return path_records([("A", "B", "CORRECT"), ("B", "C", "ERROR"), ("A", "B", "CORRECT")])
