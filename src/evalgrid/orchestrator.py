# Copyright (c) Syntropy Systems
"""Run the full suite x level matrix."""
from __future__ import annotations

import time
from datetime import datetime
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table

from evalgrid import console as out
from evalgrid.evaluation import EvaluationRunner
from evalgrid.matrix import expand_matrix
from evalgrid.models.record import BatchTally
from evalgrid.summary import SummaryStore, read_rows

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from rich.console import Console

    from evalgrid.config import EvaluationConfig
    from evalgrid.models.record import SummaryRow

TABLE_COLUMNS = [
    ("Task Suite", 25),
    ("Level", 8),
    ("Success Rate", 12),
    ("Successes", 10),
    ("Total", 10),
    ("Total Costs", 12),
    ("Success Costs", 12),
    ("Failure Costs", 12),
]


def build_results_table(rows: list[SummaryRow], title: str | None = None) -> Table:
    """Fixed-width table of summary rows."""
    table = Table(title=title)
    for name, width in TABLE_COLUMNS:
        table.add_column(name, min_width=width, no_wrap=True)

    for row in rows:
        rate = f"[red]{row.success_rate}[/red]" if row.failed else row.success_rate
        table.add_row(
            escape(row.suite),
            row.level,
            rate,
            row.successes,
            row.total_episodes,
            row.total_costs,
            row.success_costs,
            row.failure_costs,
        )
    return table


class MatrixOrchestrator:
    """Evaluates every cell of the matrix, in order, one at a time.

    A failed cell is counted and recorded; it never stops the batch.
    """

    config: EvaluationConfig
    console: Console
    store: SummaryStore | None
    tally: BatchTally

    def __init__(
        self,
        config: EvaluationConfig,
        console: Console | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config.with_batch_id()
        self.console = console or out.console
        self._sleep = sleep
        self.tally = BatchTally()
        self.store = None
        if not self.config.dry_run:
            self.store = SummaryStore.create(self.config.output_dir, self.batch_id)

    @property
    def batch_id(self) -> str:
        return self.config.batch_id or ""

    def run(self) -> BatchTally:
        """Run the whole batch and produce the summary files."""
        config = self.config
        cells = expand_matrix(config.suites, config.levels)
        self.tally = BatchTally(total=len(cells))

        self._print_config(started_at=datetime.now())

        # Fatal if this fails: there is nowhere to record results
        if self.store is not None:
            config.output_dir.mkdir(parents=True, exist_ok=True)
            self.store.start()

        runner = EvaluationRunner(config, self.store, self.console)

        out.info(f"Total evaluations to run: {self.tally.total}", self.console)

        for index, cell in enumerate(cells, start=1):
            out.info(f"Progress: {index}/{self.tally.total}", self.console)
            self.tally.record(runner.run(cell))

            if index < len(cells) and config.cell_delay > 0:
                self._sleep(config.cell_delay)

        self._finish()
        return self.tally

    def _print_config(self, started_at: datetime) -> None:
        config = self.config
        out.info(f"Starting batch evaluation at {started_at:%c}", self.console)
        out.info("Configuration:", self.console)
        for label, value in [
            ("Checkpoint", config.checkpoint),
            ("Model family", config.model_family),
            ("Trials per task", config.num_trials),
            ("Seed", config.seed),
            ("Output directory", config.output_dir),
            ("Batch id", self.batch_id),
            ("Task suites", " ".join(config.suites)),
            ("Task levels", " ".join(str(level) for level in config.levels)),
            ("Skip existing", config.skip_existing),
            ("Dry run", config.dry_run),
            ("Verbose errors", config.verbose_errors),
        ]:
            out.info(f"  {label}: {value}", self.console)

    def _finish(self) -> None:
        tally = self.tally
        out.info(f"Batch evaluation completed at {datetime.now():%c}", self.console)
        out.info(f"Successful evaluations: {tally.succeeded}", self.console)
        out.info(f"Failed evaluations: {tally.failed}", self.console)

        if self.store is None:
            out.success("Dry run finished, nothing was executed", self.console)
            return

        report_path = self.store.render_report(self.config, tally)
        out.success(f"Summary saved to: {report_path}", self.console)
        out.success(f"CSV results saved to: {self.store.csv_path}", self.console)

        if tally.succeeded > 0:
            self._print_results(self.store.csv_path)

        if tally.failed > 0:
            out.warning("Some evaluations failed. Check the log files for details.", self.console)

        out.success("Batch evaluation completed!", self.console)

    def _print_results(self, csv_path: Path) -> None:
        rows = [row for row in read_rows(csv_path) if not row.failed]
        out.info("Results Summary:", self.console)
        self.console.print()
        self.console.print(build_results_table(rows))
