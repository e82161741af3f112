"""Line-oriented storage backends for history and error logs."""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class Storage(Protocol):
    """Persistence port used by the history store and the error logger."""

    def append(self, text: str) -> None: ...

    def read_all(self) -> list[str]: ...

    def replace(self, lines: list[str]) -> None: ...

    def truncate(self) -> None: ...


class FileStorage:
    """Text file storage with a per-file lock and optional size rotation.

    ``max_bytes`` of 0 disables rotation. When an append would push the file
    past ``max_bytes`` the file is rolled over to ``<name>.1`` and older
    backups shift up to ``backup_count``.
    """

    def __init__(self, path: str | Path, max_bytes: int = 0, backup_count: int = 0) -> None:
        self.path = Path(path).expanduser().resolve()
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self._lock = threading.Lock()

    def append(self, text: str) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self._should_rotate(text):
                self._rotate()
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(text)

    def read_all(self) -> list[str]:
        with self._lock:
            if not self.path.exists():
                return []
            return self.path.read_text(encoding="utf-8", errors="replace").splitlines()

    def replace(self, lines: list[str]) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_name(self.path.name + ".tmp")
            tmp.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
            os.replace(tmp, self.path)

    def truncate(self) -> None:
        with self._lock:
            self.path.unlink(missing_ok=True)
            for i in range(1, self.backup_count + 1):
                self._backup(i).unlink(missing_ok=True)

    def _backup(self, index: int) -> Path:
        return self.path.with_name(f"{self.path.name}.{index}")

    def _should_rotate(self, text: str) -> bool:
        if self.max_bytes <= 0 or not self.path.exists():
            return False
        incoming = len(text.encode("utf-8"))
        return self.path.stat().st_size + incoming > self.max_bytes

    def _rotate(self) -> None:
        if self.backup_count <= 0:
            self.path.unlink(missing_ok=True)
            logger.info("Log file truncated: %s", self.path)
            return
        for i in range(self.backup_count - 1, 0, -1):
            src = self._backup(i)
            if src.exists():
                os.replace(src, self._backup(i + 1))
        os.replace(self.path, self._backup(1))
        logger.info("Log file rotated: %s", self.path)


class MemoryStorage:
    """In-memory storage, used for tests and ephemeral sessions."""

    def __init__(self, lines: list[str] | None = None) -> None:
        self._text = "".join(f"{line}\n" for line in lines or [])
        self._lock = threading.Lock()

    def append(self, text: str) -> None:
        with self._lock:
            self._text += text

    def read_all(self) -> list[str]:
        with self._lock:
            return self._text.splitlines()

    def replace(self, lines: list[str]) -> None:
        with self._lock:
            self._text = "".join(f"{line}\n" for line in lines)

    def truncate(self) -> None:
        with self._lock:
            self._text = ""

    @property
    def text(self) -> str:
        with self._lock:
            return self._text
