# Copyright (c) Syntropy Systems
"""Configuration management for evalgrid."""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import cast

import yaml

CONFIG_FILENAME = "evalgrid.yaml"

DEFAULT_SUITES: tuple[str, ...] = (
    "safety_dynamic_obstacles",
    "safety_hazard_avoidance",
    "safety_object_state_preservation",
    "safety_risk_aware_grasping",
    "safety_static_obstacles",
    "robustness_dynamic_distractors",
    "robustness_static_distractors",
    "generalization_object_preposition_combinations",
    "generalization_task_workflows",
    "generalization_unseen_objects",
    "long_horizon",
)

DEFAULT_LEVELS: tuple[int, ...] = (0, 1, 2)


@dataclass(frozen=True)
class EvaluationConfig:
    """Configuration for one batch evaluation."""

    checkpoint: str = "your/path/to/model"
    action_decoder_path: str = "your/path/to/action/decoder"
    model_family: str = "openvla"
    num_trials: int = 10
    seed: int = 7
    output_dir: Path = Path("batch_results")

    suites: tuple[str, ...] = DEFAULT_SUITES
    levels: tuple[int, ...] = DEFAULT_LEVELS

    # Visual perturbations
    noise: bool = False
    color: bool = False
    light: bool = False
    camera: bool = False

    save_video_mode: str = "first_success_failure"

    skip_existing: bool = False
    dry_run: bool = False
    verbose_errors: bool = True

    # Evaluation program argv prefix
    program: tuple[str, ...] = ("python", "run_vla_arena_eval.py")

    # Pause between cells (seconds)
    cell_delay: float = 2.0

    # Timestamp naming this batch's logs and summaries
    batch_id: str | None = None

    def __post_init__(self) -> None:
        if not self.suites:
            msg = "At least one task suite is required"
            raise ValueError(msg)
        if not self.levels:
            msg = "At least one task level is required"
            raise ValueError(msg)
        if not self.program:
            msg = "Evaluation program command is empty"
            raise ValueError(msg)

    def replace(self, **changes: object) -> EvaluationConfig:
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    def with_batch_id(self) -> EvaluationConfig:
        """Return a copy whose batch_id is set, stamping one if missing."""
        if self.batch_id:
            return self
        return self.replace(batch_id=new_batch_id())


def new_batch_id() -> str:
    """Timestamp used to name a batch's files."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def get_global_config_dir() -> Path:
    """Get the global evalgrid config directory (~/.evalgrid)."""
    return Path.home() / ".evalgrid"


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Locate the config file to use.

    Looks for:
    1. evalgrid.yaml in start_path (defaults to the cwd)
    2. ~/.evalgrid/config.yaml
    """
    if start_path is None:
        start_path = Path.cwd()

    local = start_path / CONFIG_FILENAME
    if local.is_file():
        return local

    global_config = get_global_config_dir() / "config.yaml"
    if global_config.is_file():
        return global_config

    return None


def _str_list(value: object) -> tuple[str, ...] | None:
    if isinstance(value, str):
        items = value.split()
    elif isinstance(value, list):
        items = [str(v) for v in cast("list[object]", value)]
    else:
        return None
    return tuple(items) or None


def _int_list(value: object) -> tuple[int, ...] | None:
    raw = _str_list(value)
    if raw is None:
        return None
    try:
        return tuple(int(v) for v in raw)
    except ValueError:
        return None


def load_config(path: Path | None = None) -> EvaluationConfig:
    """Load configuration from a YAML file or defaults.

    Keys that are missing or have the wrong type keep their defaults.
    """
    config = EvaluationConfig()

    config_path = path if path is not None else find_config_file()
    if config_path is None:
        return config

    with config_path.open() as f:
        raw = cast("object", yaml.safe_load(f))

    if raw is None:
        return config
    if not isinstance(raw, dict):
        msg = f"{config_path}: expected a mapping at the top level"
        raise ValueError(msg)
    data = cast("dict[str, object]", raw)

    changes: dict[str, object] = {}

    for key in ("checkpoint", "action_decoder_path", "model_family", "save_video_mode"):
        value = data.get(key)
        if isinstance(value, str):
            changes[key] = value

    for key in ("num_trials", "seed"):
        value = data.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            changes[key] = value

    for key in (
        "noise", "color", "light", "camera",
        "skip_existing", "dry_run", "verbose_errors",
    ):
        value = data.get(key)
        if isinstance(value, bool):
            changes[key] = value

    output_dir = data.get("output_dir")
    if isinstance(output_dir, str):
        changes["output_dir"] = Path(output_dir).expanduser()

    cell_delay = data.get("cell_delay")
    if isinstance(cell_delay, (int, float)) and not isinstance(cell_delay, bool):
        changes["cell_delay"] = float(cell_delay)

    suites = _str_list(data.get("suites"))
    if suites is not None:
        changes["suites"] = suites

    levels = _int_list(data.get("levels"))
    if levels is not None:
        changes["levels"] = levels

    program = _str_list(data.get("program"))
    if program is not None:
        changes["program"] = program

    return config.replace(**changes)
