# Copyright (c) Syntropy Systems
"""evalgrid run command."""
from __future__ import annotations

import shlex
from pathlib import Path

import typer
import yaml
from rich.console import Console

from evalgrid.config import load_config
from evalgrid.orchestrator import MatrixOrchestrator

console = Console()


def _parse_suites(value: str | None) -> tuple[str, ...] | None:
    if value is None:
        return None
    suites = tuple(value.split())
    if not suites:
        msg = "expected at least one suite"
        raise typer.BadParameter(msg, param_hint="--suites")
    return suites


def _parse_levels(value: str | None) -> tuple[int, ...] | None:
    if value is None:
        return None
    try:
        levels = tuple(int(v) for v in value.split())
    except ValueError as e:
        msg = f"levels must be integers, got {value!r}"
        raise typer.BadParameter(msg, param_hint="--levels") from e
    if not levels:
        msg = "expected at least one level"
        raise typer.BadParameter(msg, param_hint="--levels")
    return levels


def run(  # noqa: PLR0913
    config_file: Path | None = typer.Option(
        None,
        "--config",
        help="YAML file with defaults (default: ./evalgrid.yaml if present)",
        exists=True,
        dir_okay=False,
    ),
    checkpoint: str | None = typer.Option(
        None, "--checkpoint", "-c", help="Path to pretrained checkpoint"
    ),
    action_decoder: str | None = typer.Option(
        None, "--action-decoder", help="Path to the action decoder"
    ),
    model_family: str | None = typer.Option(
        None, "--model-family", "-m", help="Model family"
    ),
    trials: int | None = typer.Option(
        None, "--trials", "-t", min=1, help="Number of trials per task"
    ),
    seed: int | None = typer.Option(None, "--seed", "-s", help="Random seed"),
    output_dir: Path | None = typer.Option(
        None, "--output-dir", "-o", help="Output directory for logs and summaries"
    ),
    suites: str | None = typer.Option(
        None, "--suites", help='Space-separated task suites, e.g. "suite1 suite2"'
    ),
    levels: str | None = typer.Option(
        None, "--levels", help='Space-separated task levels, e.g. "0 1 2"'
    ),
    noise: bool = typer.Option(False, "--noise", help="Add visual noise"),
    color: bool = typer.Option(False, "--color", help="Randomize object colors"),
    light: bool = typer.Option(False, "--light", help="Adjust scene lighting"),
    camera: bool = typer.Option(False, "--camera", help="Offset the camera"),
    skip_existing: bool = typer.Option(
        False, "--skip-existing", help="Skip cells whose log already has a result"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Show what would be run without executing"
    ),
    verbose_errors: bool = typer.Option(
        False,
        "--verbose-errors",
        help="Show log excerpts and tracebacks for failed cells (default)",
    ),
    quiet_errors: bool = typer.Option(
        False,
        "--quiet-errors",
        help="Only print the log path of failed cells",
    ),
    batch_id: str | None = typer.Option(
        None,
        "--batch-id",
        help="Reuse a previous batch timestamp (e.g. to resume with --skip-existing)",
    ),
    program: str | None = typer.Option(
        None, "--program", help='Evaluation command, e.g. "python run_eval.py"'
    ),
    delay: float | None = typer.Option(
        None, "--delay", min=0.0, help="Seconds to pause between cells"
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Exit with status 1 if any cell failed"
    ),
) -> None:
    r"""Evaluate every task suite at every task level.

    Cells run one at a time, suites outer and levels inner. Failed cells
    are recorded and the batch carries on.

    \b
    Examples:
        evalgrid run
        evalgrid run --suites "safety_static_obstacles long_horizon" --levels "0 1"
        evalgrid run -c /path/to/checkpoint -t 5
        evalgrid run --dry-run
    """
    try:
        config = load_config(config_file)
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1) from e

    changes: dict[str, object] = {
        "checkpoint": checkpoint,
        "action_decoder_path": action_decoder,
        "model_family": model_family,
        "num_trials": trials,
        "seed": seed,
        "output_dir": output_dir,
        "suites": _parse_suites(suites),
        "levels": _parse_levels(levels),
        "batch_id": batch_id,
        "program": tuple(shlex.split(program)) if program is not None else None,
        "cell_delay": delay,
    }
    # Switches only ever turn a setting on over the file defaults
    for key, enabled in [
        ("noise", noise),
        ("color", color),
        ("light", light),
        ("camera", camera),
        ("skip_existing", skip_existing),
        ("dry_run", dry_run),
        ("verbose_errors", verbose_errors),
    ]:
        if enabled:
            changes[key] = True
    if quiet_errors:
        changes["verbose_errors"] = False

    try:
        config = config.replace(**{k: v for k, v in changes.items() if v is not None})
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    orchestrator = MatrixOrchestrator(config)
    try:
        tally = orchestrator.run()
    except OSError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if strict and tally.failed > 0:
        raise typer.Exit(1)
