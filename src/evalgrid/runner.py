# Copyright (c) Syntropy Systems
"""Child process runner with orphan prevention."""
from __future__ import annotations

import contextlib
import ctypes
import os
import signal
import subprocess
import sys
from typing import IO, TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


def setup_pdeathsig() -> None:
    """Set PDEATHSIG so the evaluation dies when the harness dies.

    Only works on Linux.
    """
    if sys.platform != "linux":
        return
    try:
        libc = ctypes.CDLL("libc.so.6", use_errno=True)
        pr_set_pdeathsig = 1
        libc.prctl(pr_set_pdeathsig, signal.SIGKILL)
    except (AttributeError, OSError):
        # Can't set PDEATHSIG, continue without it
        return


class ProcessRunner:
    """Runs one evaluation command with its output captured to a log.

    - No shell: the command is an argv list
    - stdout and stderr both go to the log file, which is overwritten
    - Runs in its own process group so it can be torn down as a unit
    """

    command_argv: list[str]
    log_path: Path
    workdir: Path | None
    env: dict[str, str]
    _process: subprocess.Popen[bytes] | None
    _log_file: IO[str] | None

    def __init__(
        self,
        command_argv: list[str],
        log_path: Path,
        workdir: Path | None = None,
        env: dict[str, str] | None = None,
    ) -> None:
        """Initialize a process runner.

        Args:
            command_argv: Command as list of argv tokens (no shell)
            log_path: File receiving the combined output
            workdir: Working directory, defaults to the current one
            env: Additional environment variables

        """
        self.command_argv = command_argv
        self.log_path = log_path
        self.workdir = workdir

        self.env = os.environ.copy()
        if env:
            self.env.update(env)

        self._process = None
        self._log_file = None

    def start(self) -> None:
        """Start the process.

        Raises OSError if the program cannot be launched.
        """
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._log_file = self.log_path.open("w")

        try:
            self._process = subprocess.Popen(  # noqa: S603
                self.command_argv,
                stdout=self._log_file,
                stderr=subprocess.STDOUT,
                env=self.env,
                cwd=str(self.workdir) if self.workdir else None,
                start_new_session=True,
                preexec_fn=setup_pdeathsig if sys.platform == "linux" else None,  # noqa: PLW1509
            )
        except OSError as e:
            # Leave the reason in the log like any other failure
            _ = self._log_file.write(f"Failed to launch {self.command_argv[0]}: {e}\n")
            self._cleanup()
            raise

    def wait(self) -> int:
        """Block until the process exits and return its exit code."""
        if self._process is None:
            msg = "Process has not been started"
            raise RuntimeError(msg)
        try:
            return self._process.wait()
        finally:
            self._cleanup()

    def run(self) -> int:
        """Start, then wait; tear the process group down if interrupted."""
        self.start()
        try:
            return self.wait()
        except KeyboardInterrupt:
            _ = self.kill()
            raise

    def kill(self, grace_period: float = 10.0) -> int:
        """Stop the process group: SIGTERM, then SIGKILL after grace_period.

        Returns the exit code (negative signal number if killed).
        """
        if self._process is None:
            msg = "Process has not been started"
            raise RuntimeError(msg)

        process = self._process
        if process.poll() is None:
            self._signal_group(signal.SIGTERM)
            try:
                _ = process.wait(timeout=grace_period)
            except subprocess.TimeoutExpired:
                self._signal_group(signal.SIGKILL)
                with contextlib.suppress(subprocess.TimeoutExpired):
                    _ = process.wait(timeout=5.0)

        self._cleanup()
        code = process.returncode
        return code if code is not None else -signal.SIGKILL

    def _signal_group(self, signum: signal.Signals) -> None:
        if self._process is None:
            return
        # start_new_session makes the child its own group leader
        with contextlib.suppress(OSError):
            os.killpg(self._process.pid, signum)

    def _cleanup(self) -> None:
        if self._log_file:
            with contextlib.suppress(OSError):
                self._log_file.close()
            self._log_file = None
