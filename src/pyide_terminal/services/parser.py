"""Command line tokenizer."""

from __future__ import annotations

from pyide_terminal.errors import EmptyCommandError
from pyide_terminal.storage.models import Command


def parse_command(text: str | None) -> Command:
    """Split a command line on whitespace.

    Quoting and escaping are not supported: a token can never contain a
    space. Raises EmptyCommandError for blank input.
    """
    if text is None or not text.strip():
        raise EmptyCommandError()
    return Command(raw=text, args=tuple(text.split()))
