# Copyright (c) Syntropy Systems
"""Evaluation matrix expansion and command construction."""
from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from evalgrid.config import EvaluationConfig


@dataclass(frozen=True)
class Cell:
    """One (suite, level) combination to evaluate."""

    suite: str
    level: int

    @property
    def level_tag(self) -> str:
        return f"L{self.level}"

    def run_id(self, model_family: str, batch_id: str) -> str:
        """Deterministic name for this cell's run within a batch."""
        return f"EVAL-{self.suite}-{model_family}-{batch_id}-{self.level_tag}"

    def log_path(self, output_dir: Path, model_family: str, batch_id: str) -> Path:
        return output_dir / f"{self.run_id(model_family, batch_id)}.txt"

    def __str__(self) -> str:
        return f"{self.suite} {self.level_tag}"


def expand_matrix(suites: Iterable[str], levels: Iterable[int]) -> list[Cell]:
    """All cells, suite-major then level-minor.

    The order is the execution order and the summary row order.
    """
    return [Cell(suite, level) for suite, level in itertools.product(suites, levels)]


def _flag(value: bool) -> str:
    return "true" if value else "false"


def command_params(config: EvaluationConfig, cell: Cell) -> list[tuple[str, str]]:
    """Named parameters passed to the evaluation program, in order."""
    return [
        ("pretrained_checkpoint", config.checkpoint),
        ("action_decoder_path", config.action_decoder_path),
        ("model_family", config.model_family),
        ("task_suite_name", cell.suite),
        ("task_level", str(cell.level)),
        ("num_trials_per_task", str(config.num_trials)),
        ("seed", str(config.seed)),
        ("local_log_dir", str(config.output_dir)),
        ("run_id_note", cell.level_tag),
        ("add_noise", _flag(config.noise)),
        ("adjust_light", _flag(config.light)),
        ("randomize_color", _flag(config.color)),
        ("camera_offset", _flag(config.camera)),
        ("save_video_mode", config.save_video_mode),
    ]


def build_command(config: EvaluationConfig, cell: Cell) -> list[str]:
    """Build the argv for one cell."""
    command = list(config.program)
    for key, value in command_params(config, cell):
        command.extend([f"--{key}", value])
    return command
