# Copyright (c) Syntropy Systems
"""Scrape results from evaluation logs.

The evaluation program reports its numbers as labelled lines such as
``Overall success rate: 0.8000``. A label can be printed many times while
the run progresses; the last occurrence is the final value.
"""
from __future__ import annotations

import re
from collections import deque
from typing import TYPE_CHECKING, TypeVar

from evalgrid.models.record import RunMetrics

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

T = TypeVar("T", int, float)

SUCCESS_RATE = "Overall success rate:"
TOTAL_EPISODES = "Total episodes:"
TOTAL_SUCCESSES = "Total successes:"
TOTAL_COSTS = "Overall costs:"
SUCCESS_COSTS = "Overall success costs:"
FAILURE_COSTS = "Overall failure costs:"

TRACEBACK_MARKER = "Traceback"
ERROR_PATTERN = re.compile(r"error|exception|failed", re.IGNORECASE)

_NUMBER = re.compile(r"\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")


def _iter_lines(log_file: Path) -> Iterator[str]:
    with log_file.open(encoding="utf-8", errors="replace") as f:
        for line in f:
            yield line.rstrip("\r\n")


def last_line_with(log_file: Path, label: str) -> str | None:
    """Return the last line containing label, or None."""
    if not log_file.is_file():
        return None
    found = None
    for line in _iter_lines(log_file):
        if label in line:
            found = line
    return found


def metric_text(log_file: Path, label: str) -> str | None:
    """Return the number after label on its last occurrence, as printed."""
    line = last_line_with(log_file, label)
    if line is None:
        return None

    tail = line[line.rindex(label) + len(label):]
    match = _NUMBER.match(tail)
    if match is None:
        return None
    return match.group(1)


def extract_metric(
    log_file: Path,
    label: str,
    parse: Callable[[str], T] = float,
) -> T | None:
    """Return the number after label on its last occurrence in the log.

    None if the log is missing, the label never appears, or the text
    following the label on that line is not a number.
    """
    text = metric_text(log_file, label)
    if text is None:
        return None
    try:
        return parse(text)
    except ValueError:
        return None


_FIELDS: list[tuple[str, str, Callable[[str], int | float]]] = [
    ("success_rate", SUCCESS_RATE, float),
    ("total_episodes", TOTAL_EPISODES, int),
    ("total_successes", TOTAL_SUCCESSES, int),
    ("total_costs", TOTAL_COSTS, float),
    ("success_costs", SUCCESS_COSTS, float),
    ("failure_costs", FAILURE_COSTS, float),
]


def extract_metrics(log_file: Path) -> RunMetrics:
    """Pull every reported metric from a log.

    Each field stands alone: one that cannot be read is left as None
    without affecting the others.
    """
    values: dict[str, int | float] = {}
    text: dict[str, str] = {}
    for name, label, parse in _FIELDS:
        printed = metric_text(log_file, label)
        if printed is None:
            continue
        try:
            values[name] = parse(printed)
        except ValueError:
            continue
        text[name] = printed
    return RunMetrics(**values, text=text)


def tail_lines(log_file: Path, n: int = 50) -> list[str]:
    """Last n lines of the log."""
    if not log_file.is_file():
        return []
    return list(deque(_iter_lines(log_file), maxlen=n))


def traceback_excerpt(log_file: Path, after: int = 20) -> list[str]:
    """First traceback line plus the lines that follow it."""
    if not log_file.is_file():
        return []
    excerpt: list[str] = []
    for line in _iter_lines(log_file):
        if excerpt:
            if len(excerpt) > after:
                break
            excerpt.append(line)
        elif TRACEBACK_MARKER in line:
            excerpt.append(line)
    return excerpt


def error_lines(log_file: Path, n: int = 10) -> list[str]:
    """Last n lines mentioning an error, exception or failure."""
    if not log_file.is_file():
        return []
    return list(
        deque(
            (line for line in _iter_lines(log_file) if ERROR_PATTERN.search(line)),
            maxlen=n,
        )
    )
