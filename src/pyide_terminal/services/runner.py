"""Native process spawning behind a small capability interface."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol, Sequence

from pyide_terminal.errors import SpawnError

logger = logging.getLogger(__name__)


class ProcessRunner(Protocol):
    """Platform hook for starting and stopping native processes."""

    def spawn(self, args: Sequence[str], cwd: str | Path | None = None) -> subprocess.Popen: ...

    def wait(self, process: subprocess.Popen, timeout: float | None = None) -> int | None: ...

    def terminate(self, process: subprocess.Popen) -> None: ...

    def kill(self, process: subprocess.Popen) -> None: ...


class SubprocessRunner:
    """ProcessRunner backed by subprocess.Popen (exec, never a shell)."""

    def spawn(self, args: Sequence[str], cwd: str | Path | None = None) -> subprocess.Popen:
        try:
            return subprocess.Popen(
                list(args),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=str(cwd) if cwd is not None else None,
            )
        except (OSError, ValueError) as e:
            raise SpawnError(args, e) from e

    def wait(self, process: subprocess.Popen, timeout: float | None = None) -> int | None:
        """Wait for exit. Returns the exit code, or None if still alive after timeout."""
        try:
            return process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return None

    def terminate(self, process: subprocess.Popen) -> None:
        try:
            process.terminate()
        except ProcessLookupError:
            logger.debug("Process %d already gone", process.pid)

    def kill(self, process: subprocess.Popen) -> None:
        try:
            process.kill()
        except ProcessLookupError:
            logger.debug("Process %d already gone", process.pid)
