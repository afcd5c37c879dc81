# Copyright (c) Syntropy Systems
"""Batch summary table and report."""
from __future__ import annotations

import csv
import os
from datetime import datetime
from typing import TYPE_CHECKING

from evalgrid.models.record import (
    FAILED,
    NOT_AVAILABLE,
    RunOutcome,
    RunRecord,
    SummaryRow,
)

if TYPE_CHECKING:
    from pathlib import Path

    from evalgrid.config import EvaluationConfig
    from evalgrid.models.record import BatchTally

HEADER = [
    "Task Suite",
    "Level",
    "Success Rate",
    "Successes",
    "Total Episodes",
    "Total Costs",
    "Success Costs",
    "Failure Costs",
    "Log File",
]

REPORT_TITLE = "VLA-Arena Batch Evaluation Summary"


def record_to_row(record: RunRecord) -> list[str]:
    """Render a record as a summary table row."""
    if record.outcome is RunOutcome.FAILED:
        return [
            record.suite,
            record.level_tag,
            FAILED,
            *([NOT_AVAILABLE] * 5),
            record.log_file,
        ]

    metrics = record.metrics
    return [
        record.suite,
        record.level_tag,
        metrics.printed("success_rate"),
        metrics.printed("total_successes"),
        metrics.printed("total_episodes"),
        metrics.printed("total_costs"),
        metrics.printed("success_costs"),
        metrics.printed("failure_costs"),
        record.log_file,
    ]


def read_rows(csv_path: Path) -> list[SummaryRow]:
    """Read the data rows of a summary table."""
    with csv_path.open(newline="") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None or "Task Suite" not in reader.fieldnames:
            msg = f"{csv_path} is not a summary table"
            raise ValueError(msg)
        return [SummaryRow.model_validate(row) for row in reader]


class SummaryStore:
    """Append-only summary of one batch.

    Each record is written to the CSV as soon as it is appended, so an
    interrupted batch still leaves a readable table.
    """

    csv_path: Path
    report_path: Path
    _records: list[RunRecord]

    def __init__(self, csv_path: Path, report_path: Path) -> None:
        self.csv_path = csv_path
        self.report_path = report_path
        self._records = []

    @classmethod
    def create(cls, output_dir: Path, batch_id: str) -> SummaryStore:
        """Store with the standard file names for a batch."""
        return cls(
            csv_path=output_dir / f"batch_evaluation_summary_{batch_id}.csv",
            report_path=output_dir / f"detailed_summary_{batch_id}.txt",
        )

    @property
    def records(self) -> list[RunRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def start(self) -> None:
        """Create the table with just its header."""
        self.csv_path.parent.mkdir(parents=True, exist_ok=True)
        with self.csv_path.open("w", newline="") as f:
            csv.writer(f, lineterminator="\n").writerow(HEADER)

    def append(self, record: RunRecord) -> None:
        """Record a finished cell and persist it immediately."""
        with self.csv_path.open("a", newline="") as f:
            csv.writer(f, lineterminator="\n").writerow(record_to_row(record))
            f.flush()
            os.fsync(f.fileno())
        self._records.append(record)

    def render_report(
        self,
        config: EvaluationConfig,
        tally: BatchTally,
        finished_at: datetime | None = None,
    ) -> Path:
        """Write the human-readable report and return its path."""
        if finished_at is None:
            finished_at = datetime.now()

        lines = [
            REPORT_TITLE,
            "=" * len(REPORT_TITLE),
            "",
            f"Execution Time: {finished_at.strftime('%a %b %d %H:%M:%S %Y')}",
            f"Checkpoint: {config.checkpoint}",
            f"Model Family: {config.model_family}",
            f"Trials per Task: {config.num_trials}",
            f"Seed: {config.seed}",
            "",
            "Results Summary:",
            f"- Total Evaluations: {tally.total}",
            f"- Successful: {tally.succeeded}",
            f"- Failed: {tally.failed}",
            "",
            "Detailed Results:",
            "",
        ]

        # Copy the table verbatim, header included
        table = self.csv_path.read_text() if self.csv_path.exists() else ""
        if not table:
            table = ",".join(HEADER) + "\n"

        self.report_path.parent.mkdir(parents=True, exist_ok=True)
        _ = self.report_path.write_text("\n".join(lines) + "\n" + table)
        return self.report_path
