# Copyright (c) Syntropy Systems
"""Leveled console messages."""
from __future__ import annotations

from rich.console import Console
from rich.markup import escape

console = Console(highlight=False)

RULE = "-" * 40


def info(message: str, out: Console | None = None) -> None:
    (out or console).print(f"[blue]\\[INFO][/blue] {escape(message)}", soft_wrap=True)


def success(message: str, out: Console | None = None) -> None:
    (out or console).print(f"[green]\\[SUCCESS][/green] {escape(message)}", soft_wrap=True)


def warning(message: str, out: Console | None = None) -> None:
    (out or console).print(f"[yellow]\\[WARNING][/yellow] {escape(message)}", soft_wrap=True)


def error(message: str, out: Console | None = None) -> None:
    (out or console).print(f"[red]\\[ERROR][/red] {escape(message)}", soft_wrap=True)


def block(lines: list[str], out: Console | None = None, indent: str = "  ") -> None:
    """Print raw log lines between rules, indented."""
    target = out or console
    target.print(RULE, markup=False)
    for line in lines:
        target.print(f"{indent}{line}", markup=False, highlight=False, soft_wrap=True)
    target.print(RULE, markup=False)
