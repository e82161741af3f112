"""Exception hierarchy for the terminal engine."""

from __future__ import annotations


class TerminalError(Exception):
    """Base class for terminal engine errors."""


class EmptyCommandError(TerminalError):
    """Raised when a command line has no tokens."""

    def __init__(self, message: str = "Empty command") -> None:
        super().__init__(message)


class SpawnError(TerminalError):
    """Raised when a native process cannot be started."""

    def __init__(self, args: list[str] | tuple[str, ...], cause: OSError | ValueError) -> None:
        self.command_args = list(args)
        self.cause = cause
        reason = getattr(cause, "strerror", None) or cause
        super().__init__(f"Failed to start '{' '.join(self.command_args)}': {reason}")
