# Copyright (c) Syntropy Systems
"""Main CLI entry point for evalgrid."""

import typer

from evalgrid.cli.run import run
from evalgrid.cli.show import show

app = typer.Typer(
    name="evalgrid",
    help=(
        "Batch evaluation harness. Run a benchmark over every task suite "
        "and level, then collect the results."
    ),
    no_args_is_help=True,
    add_completion=False,
)

# Register commands
_ = app.command()(run)
_ = app.command()(show)


if __name__ == "__main__":
    app()
