# Copyright (c) Syntropy Systems
"""evalgrid show command."""
from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from evalgrid.orchestrator import build_results_table
from evalgrid.summary import read_rows

console = Console()


def show(
    summary_file: Path = typer.Argument(
        ...,
        help="Summary table written by 'evalgrid run'",
        exists=True,
        dir_okay=False,
    ),
    failed_only: bool = typer.Option(
        False, "--failed", "-f", help="Only show failed cells"
    ),
) -> None:
    """Show the results table of a batch, failed cells included."""
    try:
        rows = read_rows(summary_file)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if failed_only:
        rows = [row for row in rows if row.failed]

    if not rows:
        console.print("[yellow]No results found[/yellow]")
        return

    console.print(build_results_table(rows, title=summary_file.name))

    failed = sum(1 for row in rows if row.failed)
    console.print(
        f"\n[bold]{len(rows)} cells[/bold]: "
        f"[green]{len(rows) - failed} ok[/green], [red]{failed} failed[/red]"
    )

    for row in rows:
        if row.failed:
            console.print(
                f"  [dim]{escape(row.suite)} {row.level}:[/dim] {escape(row.log_file)}",
                soft_wrap=True,
            )
