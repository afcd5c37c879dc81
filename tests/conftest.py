# Copyright (c) Syntropy Systems
"""Pytest fixtures for evalgrid tests."""

import io
import os
import sys
import tempfile
import textwrap
from collections.abc import Generator
from pathlib import Path

import pytest
from rich.console import Console

from evalgrid.config import EvaluationConfig

# Store original cwd at module load time
_original_cwd = Path.cwd()

BATCH_ID = "20250101_120000"

# Stand-in for the benchmark evaluation program. It accepts exactly the
# parameters the harness passes, so an unexpected or missing flag makes it
# exit with argparse's usage error.
FAKE_EVAL_SCRIPT = textwrap.dedent(
    """
    import argparse
    import sys

    parser = argparse.ArgumentParser()
    for name in [
        "pretrained_checkpoint", "action_decoder_path", "model_family",
        "task_suite_name", "task_level", "num_trials_per_task", "seed",
        "local_log_dir", "run_id_note", "add_noise", "adjust_light",
        "randomize_color", "camera_offset", "save_video_mode",
    ]:
        parser.add_argument("--" + name, required=True)
    args = parser.parse_args()

    suite = args.task_suite_name
    level = int(args.task_level)
    trials = int(args.num_trials_per_task)

    print("Loading model from " + args.pretrained_checkpoint)
    if "broken" in suite:
        print("Traceback (most recent call last):")
        print('  File "run_eval.py", line 42, in <module>')
        print("    main()")
        sys.stderr.write("RuntimeError: simulator crashed\\n")
        sys.exit(3)

    # Progress report first, final numbers last
    print("Overall success rate: 0.1000")
    successes = trials - level - 1
    print("Total episodes: %d" % trials)
    print("Total successes: %d" % successes)
    print("Overall success rate: %.4f" % (successes / trials))
    print("Overall costs: %.1f" % (10.0 + level))
    print("Overall success costs: %.1f" % (4.0 + level))
    print("Overall failure costs: 6.0")
    if "partial" in suite:
        print("Overall costs: unknown")
    print("run_id_note=" + args.run_id_note)
    print("noise=" + args.add_noise)
    """
)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def in_temp_dir(temp_dir: Path) -> Generator[Path, None, None]:
    """Run the test from inside the temporary directory."""
    os.chdir(temp_dir)

    yield temp_dir

    # Always return to original cwd
    os.chdir(_original_cwd)


@pytest.fixture
def fake_program(temp_dir: Path) -> list[str]:
    """Command that runs the fake evaluation program."""
    script = temp_dir / "fake_eval.py"
    _ = script.write_text(FAKE_EVAL_SCRIPT)
    return [sys.executable, str(script)]


@pytest.fixture
def eval_config(temp_dir: Path, fake_program: list[str]) -> EvaluationConfig:
    """Small, fast config pointing at the fake program."""
    return EvaluationConfig(
        checkpoint="/models/ckpt",
        model_family="openvla",
        num_trials=5,
        seed=7,
        output_dir=temp_dir / "results",
        suites=("suite_a",),
        levels=(0, 1),
        program=tuple(fake_program),
        cell_delay=0.0,
        batch_id=BATCH_ID,
    )


@pytest.fixture
def capture_console() -> Console:
    """Console writing plain text to a buffer."""
    return Console(file=io.StringIO(), width=200, color_system=None, highlight=False)
