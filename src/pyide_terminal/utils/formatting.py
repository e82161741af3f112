"""Text formatting helpers for terminal output."""

from __future__ import annotations

import re

from pyide_terminal.storage.models import CommandResult

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")


def format_duration(ms: int) -> str:
    """Format milliseconds to human-readable duration."""
    if ms < 1000:
        return f"{ms}ms"
    elif ms < 60000:
        return f"{ms / 1000:.1f}s"
    else:
        minutes = ms // 60000
        seconds = (ms % 60000) // 1000
        return f"{minutes}m {seconds}s"


def format_elapsed(seconds: float) -> str:
    return f"{seconds:.1f}s"


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    elif size < 1024**2:
        return f"{size / 1024:.1f} KB"
    elif size < 1024**3:
        return f"{size / 1024**2:.1f} MB"
    else:
        return f"{size / 1024**3:.1f} GB"


def format_result(result: CommandResult) -> str:
    """Format a command result the way the terminal view prints it."""
    output = strip_ansi(result.output) or "(no output)"
    if result.exit_code is None:
        return output
    icon = "OK" if result.success else f"ERR({result.exit_code})"
    return f"{output.rstrip()}\n[{icon}] {format_duration(result.execution_time_ms)}"


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE.sub("", text)
