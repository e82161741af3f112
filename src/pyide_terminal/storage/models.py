"""Data models for pyide-terminal."""

from __future__ import annotations

import enum
import subprocess
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class Command:
    """A raw command line and its argument vector."""

    raw: str
    args: tuple[str, ...]

    @property
    def program(self) -> str:
        return self.args[0]


@dataclass
class CommandResult:
    """Result of a foreground command, a builtin, or a background poll."""

    success: bool
    stdout: str = ""
    stderr: str = ""
    command: str = ""
    execution_time_ms: int = 0
    exit_code: int | None = None
    action: str = ""

    @property
    def output(self) -> str:
        """Combined text as shown in the terminal view."""
        parts: list[str] = []
        if self.stdout:
            parts.append(self.stdout)
        if self.stderr:
            parts.append("ERROR:\n" + self.stderr)
        return "".join(parts)


class ProcessState(enum.Enum):
    RUNNING = "running"
    TERMINATING = "terminating"
    TERMINATED = "terminated"


class LineBuffer:
    """Ordered, lock-protected list of captured output lines."""

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._lock = threading.Lock()

    def append(self, line: str) -> None:
        with self._lock:
            self._lines.append(line)

    def snapshot(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._lines)

    def text(self) -> str:
        lines = self.snapshot()
        return "".join(f"{line}\n" for line in lines)

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)


@dataclass
class ProcessHandle:
    """A background process tracked by the registry."""

    id: int
    command: str
    process: subprocess.Popen
    start_time: float = field(default_factory=time.time)
    stdout: LineBuffer = field(default_factory=LineBuffer)
    stderr: LineBuffer = field(default_factory=LineBuffer)
    state: ProcessState = ProcessState.RUNNING
    exit_code: int | None = None
    end_time: float | None = None
    readers: list[threading.Thread] = field(default_factory=list, repr=False)

    @property
    def running(self) -> bool:
        return self.state is ProcessState.RUNNING and self.process.poll() is None

    @property
    def elapsed(self) -> float:
        return (self.end_time or time.time()) - self.start_time

    def snapshot(self) -> ProcessSnapshot:
        return ProcessSnapshot(
            id=self.id,
            command=self.command,
            start_time=self.start_time,
            stdout=self.stdout.snapshot(),
            stderr=self.stderr.snapshot(),
            state=self.state,
            exit_code=self.exit_code,
            running=self.running,
            elapsed=self.elapsed,
        )


@dataclass(frozen=True)
class ProcessSnapshot:
    """Read-only copy of a ProcessHandle at a point in time."""

    id: int
    command: str
    start_time: float
    stdout: tuple[str, ...]
    stderr: tuple[str, ...]
    state: ProcessState
    exit_code: int | None
    running: bool
    elapsed: float


@dataclass(frozen=True)
class ErrorEntry:
    """A structured failure record."""

    timestamp: datetime
    category: str
    message: str
    stack_trace: str = ""

    @property
    def formatted_time(self) -> str:
        return self.timestamp.strftime(TIMESTAMP_FORMAT)


@dataclass
class ErrorAnalysis:
    """Heuristic diagnosis of an error message."""

    categories: list[str] = field(default_factory=list)
    explanations: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return bool(self.categories)

    def render(self) -> str:
        lines = ["Error analysis:"]
        if self.explanations:
            lines.extend(f"- {text}" for text in self.explanations)
        else:
            lines.append("- No known error pattern recognized")
        lines.append("")
        lines.append("Suggestions:")
        lines.extend(f"{i}. {text}" for i, text in enumerate(self.suggestions, start=1))
        return "\n".join(lines) + "\n"
