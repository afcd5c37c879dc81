# Copyright (c) Syntropy Systems
"""Evaluate a single matrix cell."""
from __future__ import annotations

import logging
import shlex
from typing import TYPE_CHECKING

from evalgrid import console as out
from evalgrid.extract import (
    error_lines,
    extract_metrics,
    tail_lines,
    traceback_excerpt,
)
from evalgrid.matrix import build_command
from evalgrid.models.record import RunMetrics, RunOutcome, RunRecord
from evalgrid.runner import ProcessRunner

if TYPE_CHECKING:
    from pathlib import Path

    from rich.console import Console

    from evalgrid.config import EvaluationConfig
    from evalgrid.matrix import Cell
    from evalgrid.summary import SummaryStore

logger = logging.getLogger(__name__)

TAIL_LINES = 50
TRACEBACK_LINES = 20
ERROR_LINES = 10


class EvaluationRunner:
    """Runs cells one at a time and records each outcome.

    Every call to run() that is not a dry run appends exactly one record
    to the summary store, whichever way the cell ends.
    """

    config: EvaluationConfig
    batch_id: str
    store: SummaryStore | None
    console: Console | None

    def __init__(
        self,
        config: EvaluationConfig,
        store: SummaryStore | None,
        console: Console | None = None,
    ) -> None:
        if not config.batch_id:
            msg = "EvaluationRunner needs a config with a batch_id"
            raise ValueError(msg)
        if store is None and not config.dry_run:
            msg = "A summary store is required unless this is a dry run"
            raise ValueError(msg)
        self.config = config
        self.batch_id = config.batch_id
        self.store = store
        self.console = console

    def log_path(self, cell: Cell) -> Path:
        return cell.log_path(self.config.output_dir, self.config.model_family, self.batch_id)

    def run(self, cell: Cell) -> bool:
        """Evaluate one cell. Returns True unless the evaluation failed."""
        log_file = self.log_path(cell)
        out.info(f"Running evaluation: Suite={cell.suite}, Level={cell.level}", self.console)
        run_id = cell.run_id(self.config.model_family, self.batch_id)
        out.info(f"Run id: {run_id} -> {log_file}", self.console)

        if self.config.skip_existing and log_file.is_file():
            existing = extract_metrics(log_file)
            if existing.success_rate is not None:
                out.warning(
                    f"Skipping {cell} (already exists with success rate: "
                    f"{existing.printed('success_rate')})",
                    self.console,
                )
                self._record(cell, RunOutcome.SKIPPED, existing, log_file)
                return True

        command = build_command(self.config, cell)

        if self.config.dry_run:
            out.info(f"DRY RUN: {shlex.join(command)}", self.console)
            return True

        out.info(f"Executing: {shlex.join(command)}", self.console)
        process = ProcessRunner(command, log_file)
        try:
            exit_code = process.run()
        except OSError as e:
            logger.debug("Could not launch %s", command[0], exc_info=True)
            out.error(f"Could not launch {command[0]}: {e}", self.console)
            exit_code = None

        if exit_code != 0:
            if exit_code is not None:
                logger.debug("%s exited with code %d", cell, exit_code)
            self._report_failure(cell, log_file)
            self._record(cell, RunOutcome.FAILED, RunMetrics.unavailable(), log_file)
            return False

        metrics = extract_metrics(log_file)
        out.success(
            f"Completed {cell}: Success rate = {metrics.printed('success_rate')} "
            f"({metrics.printed('total_successes')}/{metrics.printed('total_episodes')}), "
            f"Costs = {metrics.printed('total_costs')}",
            self.console,
        )
        self._record(cell, RunOutcome.COMPLETED, metrics, log_file)
        return True

    def _record(
        self,
        cell: Cell,
        outcome: RunOutcome,
        metrics: RunMetrics,
        log_file: Path,
    ) -> None:
        if self.store is None:
            return
        self.store.append(
            RunRecord(
                suite=cell.suite,
                level=cell.level,
                outcome=outcome,
                metrics=metrics,
                log_file=str(log_file),
            )
        )

    def _report_failure(self, cell: Cell, log_file: Path) -> None:
        out.error(f"Failed to run {cell}", self.console)

        if not self.config.verbose_errors:
            out.error("Use --verbose-errors to see detailed error information", self.console)
            out.error(f"Log file: {log_file}", self.console)
            return

        out.error("Error details from log file:", self.console)
        if not log_file.is_file():
            out.error(f"Log file not found: {log_file}", self.console)
            return

        out.block(tail_lines(log_file, TAIL_LINES), self.console)

        traceback = traceback_excerpt(log_file, TRACEBACK_LINES)
        if traceback:
            out.error("Python traceback found:", self.console)
            out.block(traceback, self.console)

        errors = error_lines(log_file, ERROR_LINES)
        if errors:
            out.error("Error messages found:", self.console)
            out.block(errors, self.console)
