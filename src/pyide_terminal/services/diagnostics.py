"""Error logging and heuristic error analysis."""

from __future__ import annotations

import logging
import re
import threading
import traceback
from collections import Counter, deque
from datetime import datetime

from pyide_terminal.storage.files import Storage
from pyide_terminal.storage.models import TIMESTAMP_FORMAT, ErrorAnalysis, ErrorEntry

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 50
SEPARATOR = "---"
HEADER = re.compile(r"^\[(?P<timestamp>[^\]]+)\] (?P<category>[^:\s]+): (?P<message>.*)$")
LEVEL_CATEGORIES = frozenset({"INFO", "WARNING"})

# (substring, category, explanation, suggested fixes)
ERROR_PATTERNS: list[tuple[str, str, str, list[str]]] = [
    (
        "No module named",
        "missing-module",
        "Module is not available, check that the package is installed",
        ["Install the missing module with pip", "Check which Python interpreter is on PATH"],
    ),
    ("NameError", "name", "Undefined variable or misspelled name", []),
    ("SyntaxError", "syntax", "Invalid code structure, check the syntax", []),
    ("IndentationError", "indentation", "Inconsistent or unexpected indentation", []),
    ("ImportError", "import", "A module could not be imported", []),
    ("FileNotFoundError", "file-not-found", "File does not exist", []),
    ("PermissionError", "permission", "Insufficient permissions", []),
    ("UnicodeError", "encoding", "Text encoding problem", []),
    ("MemoryError", "memory", "Out of memory", []),
    ("SystemError", "system", "Internal interpreter error", []),
    (
        "Permission denied",
        "permission",
        "The operating system refused access",
        ["Change the file permissions", "Make sure the directory is writable"],
    ),
    (
        "Connection refused",
        "network",
        "Nothing is listening at the target address",
        ["Make sure the service is running", "Check the port number"],
    ),
    (
        "command not found",
        "not-found",
        "The program is not installed or not on PATH",
        ["Check the spelling of the command", "Install the program or add it to PATH"],
    ),
    (
        "No such file or directory",
        "not-found",
        "A file or program path does not exist",
        ["Check the path relative to the working directory"],
    ),
]

GENERIC_SUGGESTIONS = [
    "Check that the code is correct",
    "Make sure the requirements are installed",
    "Review the detailed logs",
]


def analyze(message: str | None) -> ErrorAnalysis:
    """Match known error substrings. Never raises; unknown input gets generic advice."""
    analysis = ErrorAnalysis(suggestions=list(GENERIC_SUGGESTIONS))
    if not message:
        return analysis
    for needle, category, explanation, _ in ERROR_PATTERNS:
        if needle in message and explanation not in analysis.explanations:
            analysis.categories.append(category)
            analysis.explanations.append(explanation)
    return analysis


def suggest_solutions(message: str | None) -> list[str]:
    """Specific fixes for recognized errors; empty when nothing matches."""
    if not message:
        return []
    solutions: list[str] = []
    for needle, _, _, fixes in ERROR_PATTERNS:
        if needle in message:
            solutions.extend(fix for fix in fixes if fix not in solutions)
    return solutions


def format_block(timestamp: datetime, category: str, message: str, stack_trace: str = "") -> str:
    lines = [f"[{timestamp.strftime(TIMESTAMP_FORMAT)}] {category}: {message}"]
    if stack_trace:
        lines.append("Stack Trace:")
        lines.append(stack_trace.rstrip("\n"))
    lines.append(SEPARATOR)
    return "\n".join(lines) + "\n"


def parse_log(lines: list[str]) -> list[ErrorEntry]:
    """Rebuild error entries from log lines; INFO and WARNING blocks are skipped."""
    entries: list[ErrorEntry] = []
    header: re.Match[str] | None = None
    trace: list[str] = []
    in_trace = False
    for line in lines:
        if line == SEPARATOR:
            if header is not None and header["category"] not in LEVEL_CATEGORIES:
                try:
                    timestamp = datetime.strptime(header["timestamp"], TIMESTAMP_FORMAT)
                except ValueError:
                    timestamp = datetime.min
                entries.append(
                    ErrorEntry(
                        timestamp=timestamp,
                        category=header["category"],
                        message=header["message"],
                        stack_trace="\n".join(trace),
                    )
                )
            header, trace, in_trace = None, [], False
        elif header is None:
            header = HEADER.match(line)
        elif line == "Stack Trace:" and not in_trace:
            in_trace = True
        elif in_trace:
            trace.append(line)
    return entries


class ErrorLogger:
    """Structured error log with a bounded in-memory window.

    The backing storage is only ever appended to; growth is bounded by the
    storage's rotation policy.
    """

    def __init__(self, storage: Storage, window: int = DEFAULT_WINDOW) -> None:
        self._storage = storage
        self.window = window
        self._lock = threading.Lock()
        self._entries: deque[ErrorEntry] = deque(self._load(), maxlen=window)

    def _load(self) -> list[ErrorEntry]:
        try:
            return parse_log(self._storage.read_all())
        except OSError as e:
            logger.warning("Could not load error log: %s", e)
            return []

    def log_error(self, category: str, message: str, exc: BaseException | None = None) -> ErrorEntry:
        stack_trace = ""
        if exc is not None:
            stack_trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        entry = ErrorEntry(
            timestamp=datetime.now(),
            category=category,
            message=message,
            stack_trace=stack_trace,
        )
        with self._lock:
            self._entries.append(entry)
        self._write(format_block(entry.timestamp, category, message, stack_trace))
        logger.error("[%s] %s", category, message)
        return entry

    def log_warning(self, message: str) -> None:
        logger.warning(message)
        self._write(format_block(datetime.now(), "WARNING", message))

    def log_info(self, message: str) -> None:
        logger.info(message)
        self._write(format_block(datetime.now(), "INFO", message))

    def _write(self, block: str) -> None:
        try:
            self._storage.append(block)
        except OSError:
            logger.exception("Failed to write error log")

    def recent_errors(self, count: int) -> list[ErrorEntry]:
        with self._lock:
            entries = list(self._entries)
        if count <= 0 or count >= len(entries):
            return entries
        return entries[-count:]

    def all_errors(self) -> list[ErrorEntry]:
        with self._lock:
            return list(self._entries)

    @property
    def error_count(self) -> int:
        with self._lock:
            return len(self._entries)

    def statistics(self) -> str:
        entries = self.all_errors()
        if not entries:
            return "No errors recorded"
        counts = Counter(entry.category for entry in entries)
        lines = ["Error statistics:", f"Total errors: {len(entries)}"]
        lines.extend(f"- {category}: {count}" for category, count in counts.most_common())
        lines.append(f"Last error: {entries[-1].formatted_time}")
        return "\n".join(lines) + "\n"

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        try:
            self._storage.truncate()
        except OSError:
            logger.exception("Failed to remove error log")
