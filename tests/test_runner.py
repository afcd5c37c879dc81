# Copyright (c) Syntropy Systems
"""Tests for the child process runner."""

from __future__ import annotations

import signal
import sys
import time
from pathlib import Path

import pytest

from evalgrid.runner import ProcessRunner


class TestProcessRunner:
    """Tests for ProcessRunner."""

    def test_captures_stdout_and_stderr(self, temp_dir: Path) -> None:
        """Test that both streams end up in the log."""
        log = temp_dir / "logs" / "run.txt"
        runner = ProcessRunner(
            [
                sys.executable,
                "-c",
                "import sys; print('to stdout', flush=True); sys.stderr.write('to stderr\\n')",
            ],
            log,
        )

        exit_code = runner.run()

        assert exit_code == 0
        text = log.read_text()
        assert "to stdout" in text
        assert "to stderr" in text

    def test_nonzero_exit_code(self, temp_dir: Path) -> None:
        """Test that the exit code is reported."""
        runner = ProcessRunner(
            [sys.executable, "-c", "import sys; sys.exit(42)"],
            temp_dir / "run.txt",
        )

        assert runner.run() == 42

    def test_log_is_overwritten(self, temp_dir: Path) -> None:
        """Test that a previous log for the same run is replaced."""
        log = temp_dir / "run.txt"
        _ = log.write_text("old content\n")

        _ = ProcessRunner([sys.executable, "-c", "print('new content')"], log).run()

        text = log.read_text()
        assert "new content" in text
        assert "old content" not in text

    def test_launch_failure(self, temp_dir: Path) -> None:
        """Test that a missing program raises and leaves a note in the log."""
        log = temp_dir / "run.txt"
        runner = ProcessRunner([str(temp_dir / "no-such-program")], log)

        with pytest.raises(OSError):
            runner.start()

        assert "Failed to launch" in log.read_text()

    def test_env_is_passed(self, temp_dir: Path) -> None:
        """Test extra environment variables."""
        log = temp_dir / "run.txt"
        runner = ProcessRunner(
            [sys.executable, "-c", "import os; print(os.environ['EVALGRID_TEST'])"],
            log,
            env={"EVALGRID_TEST": "hello"},
        )

        _ = runner.run()

        assert "hello" in log.read_text()

    def test_kill(self, temp_dir: Path) -> None:
        """Test that a running process can be terminated."""
        runner = ProcessRunner(
            [sys.executable, "-c", "import time; time.sleep(30)"],
            temp_dir / "run.txt",
        )
        runner.start()
        time.sleep(0.2)

        exit_code = runner.kill(grace_period=5.0)

        assert exit_code == -signal.SIGTERM

    def test_kill_after_exit(self, temp_dir: Path) -> None:
        """Test that killing a finished process returns its exit code."""
        runner = ProcessRunner(
            [sys.executable, "-c", "import sys; sys.exit(3)"],
            temp_dir / "run.txt",
        )
        assert runner.run() == 3

        assert runner.kill(grace_period=1.0) == 3

    def test_kill_before_start(self, temp_dir: Path) -> None:
        """Test that kill needs a started process."""
        runner = ProcessRunner([sys.executable, "-c", "pass"], temp_dir / "run.txt")

        with pytest.raises(RuntimeError):
            _ = runner.kill()
