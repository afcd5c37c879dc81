# Copyright (c) Syntropy Systems
"""Pydantic models for evaluation results."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from .base import EvalgridBaseModel, FrozenModel

NOT_AVAILABLE = "N/A"
FAILED = "FAILED"


class RunOutcome(str, Enum):
    """How a cell finished."""

    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


class RunMetrics(FrozenModel):
    """Numbers scraped from an evaluation log.

    Every field is None when the value could not be extracted. `text`
    keeps each extracted value exactly as the log printed it.
    """

    success_rate: float | None = None
    total_episodes: int | None = None
    total_successes: int | None = None
    total_costs: float | None = None
    success_costs: float | None = None
    failure_costs: float | None = None
    text: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def unavailable(cls) -> RunMetrics:
        """Metrics with nothing available."""
        return cls()

    def printed(self, name: str) -> str:
        """A field as the log printed it, or N/A if it was not extracted."""
        if getattr(self, name) is None:
            return NOT_AVAILABLE
        return self.text.get(name, str(getattr(self, name)))

    @property
    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump(exclude={"text"}).values())


class RunRecord(FrozenModel):
    """One summary entry per evaluated cell."""

    suite: str
    level: int
    outcome: RunOutcome
    metrics: RunMetrics = Field(default_factory=RunMetrics)
    log_file: str

    @property
    def level_tag(self) -> str:
        return f"L{self.level}"


class SummaryRow(EvalgridBaseModel):
    """A row read back from a summary table."""

    suite: str = Field(alias="Task Suite")
    level: str = Field(alias="Level")
    success_rate: str = Field(alias="Success Rate")
    successes: str = Field(default=NOT_AVAILABLE, alias="Successes")
    total_episodes: str = Field(default=NOT_AVAILABLE, alias="Total Episodes")
    total_costs: str = Field(default=NOT_AVAILABLE, alias="Total Costs")
    success_costs: str = Field(default=NOT_AVAILABLE, alias="Success Costs")
    failure_costs: str = Field(default=NOT_AVAILABLE, alias="Failure Costs")
    log_file: str = Field(default="", alias="Log File")

    @property
    def failed(self) -> bool:
        return self.success_rate == FAILED


class BatchTally(EvalgridBaseModel):
    """Counters for one batch; only ever incremented."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0

    def record(self, ok: bool) -> None:
        """Count one finished cell."""
        if ok:
            self.succeeded += 1
        else:
            self.failed += 1
