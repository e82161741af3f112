"""Command history store."""

from __future__ import annotations

import logging
import threading

from pyide_terminal.storage.files import Storage

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 100


class HistoryStore:
    """Size-capped command history with adjacent-duplicate suppression.

    The full list is written back to storage on every accepted add, one
    command per line, oldest first.
    """

    def __init__(self, storage: Storage, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        self._storage = storage
        self.max_entries = max_entries
        self._lock = threading.Lock()
        self._entries: list[str] = self._load()

    def _load(self) -> list[str]:
        try:
            lines = [line.strip() for line in self._storage.read_all()]
        except OSError as e:
            logger.warning("Could not load command history: %s", e)
            return []
        entries = [line for line in lines if line]
        if self.max_entries <= 0:
            return []
        return entries[-self.max_entries :]

    def add(self, command: str | None) -> bool:
        """Record a command. Returns False when it was skipped."""
        if command is None or not command.strip():
            return False
        command = command.strip()
        with self._lock:
            if self._entries and self._entries[-1] == command:
                return False
            self._entries.append(command)
            if len(self._entries) > self.max_entries:
                del self._entries[: len(self._entries) - self.max_entries]
            snapshot = list(self._entries)
            self._save(snapshot)
        return True

    def _save(self, entries: list[str]) -> None:
        try:
            self._storage.replace(entries)
        except OSError:
            logger.exception("Failed to save command history")

    def get(self, index: int) -> str | None:
        with self._lock:
            if 0 <= index < len(self._entries):
                return self._entries[index]
            return None

    def entries(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            try:
                self._storage.truncate()
            except OSError:
                logger.exception("Failed to remove command history")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
