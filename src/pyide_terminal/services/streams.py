"""Output stream readers draining child process pipes."""

from __future__ import annotations

import logging
import threading
from typing import IO

from pyide_terminal.storage.models import LineBuffer

logger = logging.getLogger(__name__)


def drain(stream: IO[bytes] | None, buffer: LineBuffer, name: str) -> None:
    """Append every line of ``stream`` to ``buffer`` until EOF.

    Read errors end the loop with a synthetic error line instead of raising.
    """
    if stream is None:
        return
    try:
        with stream:
            for raw in iter(stream.readline, b""):
                buffer.append(raw.decode("utf-8", errors="replace").rstrip("\r\n"))
    except (OSError, ValueError) as e:
        logger.warning("Error reading %s: %s", name, e)
        buffer.append(f"Error reading {name}: {e}")


def start_reader(stream: IO[bytes] | None, buffer: LineBuffer, name: str) -> threading.Thread:
    """Start a daemon thread draining ``stream`` into ``buffer``."""
    thread = threading.Thread(
        target=drain,
        args=(stream, buffer, name),
        name=f"reader-{name}",
        daemon=True,
    )
    thread.start()
    return thread
