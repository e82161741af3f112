"""Commands answered inside the terminal without spawning a process."""

from __future__ import annotations

import logging
from typing import Callable

from pyide_terminal.services.history import HistoryStore
from pyide_terminal.services.registry import ProcessRegistry
from pyide_terminal.storage.models import CommandResult
from pyide_terminal.utils.formatting import format_elapsed

logger = logging.getLogger(__name__)

BUILTIN_NAMES = frozenset({"clear", "exit", "quit", "history", "help", "ps", "kill"})

HELP_TEXT = """Python IDE Terminal commands:

clear       - clear the screen
exit/quit   - close the terminal session
history     - show command history
ps          - show active background processes
kill <id>   - stop a background process
help        - show this help

Any other input is run as a program, e.g.:
python3 --version
pip list
"""

PS_HEADER = "PID\tCOMMAND\tTIME"
KILL_USAGE = "Usage: kill <PID>"


class BuiltinDispatcher:
    """Recognize and run builtin commands (case-insensitive)."""

    def __init__(
        self,
        history: HistoryStore,
        registry: ProcessRegistry,
        kill: Callable[[int], bool] | None = None,
    ) -> None:
        self.history = history
        self.registry = registry
        self._kill = kill or registry.kill

    @staticmethod
    def matches(command: str) -> bool:
        normalized = command.strip().lower()
        return normalized in BUILTIN_NAMES or normalized.startswith("kill ")

    def dispatch(self, command: str) -> CommandResult:
        normalized = command.strip().lower()
        logger.debug("Builtin command: %s", normalized)
        if normalized == "clear":
            result = CommandResult(success=True, stdout="Screen cleared\n", action="clear")
        elif normalized in ("exit", "quit"):
            result = CommandResult(success=True, stdout="Session closed\n", action="exit")
        elif normalized == "history":
            result = self._history()
        elif normalized == "help":
            result = CommandResult(success=True, stdout=HELP_TEXT)
        elif normalized == "ps":
            result = self._ps()
        elif normalized == "kill" or normalized.startswith("kill "):
            result = self._kill_command(normalized)
        else:
            result = CommandResult(success=False, stderr=f"Unknown builtin command: {command}\n")
        result.command = command
        return result

    def _history(self) -> CommandResult:
        lines = [f"{i} {entry}" for i, entry in enumerate(self.history.entries(), start=1)]
        stdout = "Command history:\n" + "".join(f"{line}\n" for line in lines)
        return CommandResult(success=True, stdout=stdout)

    def _ps(self) -> CommandResult:
        rows = [PS_HEADER]
        for snapshot in self.registry.list().values():
            rows.append(f"{snapshot.id}\t{snapshot.command}\t{format_elapsed(snapshot.elapsed)}")
        return CommandResult(success=True, stdout="\n".join(rows) + "\n")

    def _kill_command(self, command: str) -> CommandResult:
        parts = command.split()
        if len(parts) < 2:
            return CommandResult(success=False, stderr=f"{KILL_USAGE}\n")
        try:
            process_id = int(parts[1])
        except ValueError:
            return CommandResult(success=False, stderr=f"Invalid PID: {parts[1]}\n{KILL_USAGE}\n")

        if self._kill(process_id):
            return CommandResult(success=True, stdout=f"Process {process_id} stopped\n")
        return CommandResult(success=False, stderr=f"Failed to stop process {process_id}\n")
