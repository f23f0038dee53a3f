# ABOUTME: Loads YAML configuration for building and filtering transition graphs.
# ABOUTME: Mirrors the data/graph/output sections of configs/path_graph.yaml.

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from src.common.data_pipeline import SHAPES, TUTORING_SHAPE

from .threshold import DEFAULT_THRESHOLD_PERCENT


@dataclass(frozen=True)
class PathGraphConfig:
    """Settings for one graph build."""

    input_path: Optional[Path] = None
    shape: str = TUTORING_SHAPE
    delimiter: str = "\t"
    sort_by_time: bool = False
    ignore_self_loops: bool = False
    threshold_percent: float = DEFAULT_THRESHOLD_PERCENT
    hide_error_links: bool = False
    strip_solver_nodes: bool = False
    graph_path: Path = Path("reports/path_graph.json")


def load_config(config_path: Path) -> PathGraphConfig:
    with open(config_path) as f:
        cfg = yaml.safe_load(f) or {}
    return config_from_dict(cfg)


def config_from_dict(cfg: Dict[str, Any]) -> PathGraphConfig:
    data_cfg = cfg.get("data", {}) or {}
    graph_cfg = cfg.get("graph", {}) or {}
    output_cfg = cfg.get("output", {}) or {}
    defaults = PathGraphConfig()

    shape = str(data_cfg.get("shape", defaults.shape)).strip().lower()
    if shape not in SHAPES:
        raise ValueError(f"Unsupported data.shape '{shape}'. Expected one of: {', '.join(SHAPES)}.")

    percent = float(graph_cfg.get("threshold_percent", defaults.threshold_percent))
    if percent < 0 or percent > 100:
        raise ValueError(f"graph.threshold_percent must be within [0, 100], got {percent}.")

    input_path = data_cfg.get("input_path")
    return PathGraphConfig(
        input_path=Path(input_path) if input_path else None,
        shape=shape,
        delimiter=data_cfg.get("delimiter", defaults.delimiter),
        sort_by_time=bool(data_cfg.get("sort_by_time", defaults.sort_by_time)),
        ignore_self_loops=bool(graph_cfg.get("ignore_self_loops", defaults.ignore_self_loops)),
        threshold_percent=percent,
        hide_error_links=bool(graph_cfg.get("hide_error_links", defaults.hide_error_links)),
        strip_solver_nodes=bool(graph_cfg.get("strip_solver_nodes", defaults.strip_solver_nodes)),
        graph_path=Path(output_cfg.get("graph_path", defaults.graph_path)),
    )
