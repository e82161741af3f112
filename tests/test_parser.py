"""Tests for the command parser."""

from __future__ import annotations

import pytest

from pyide_terminal.errors import EmptyCommandError, TerminalError
from pyide_terminal.services.parser import parse_command


class TestParseCommand:
    def test_simple(self):
        command = parse_command("ls -la")
        assert command.args == ("ls", "-la")
        assert command.raw == "ls -la"
        assert command.program == "ls"

    def test_collapses_whitespace(self):
        command = parse_command("  git   status\t--short  ")
        assert command.args == ("git", "status", "--short")

    def test_quotes_are_not_interpreted(self):
        command = parse_command('echo "hello world"')
        assert command.args == ("echo", '"hello', 'world"')

    def test_empty_raises(self):
        with pytest.raises(EmptyCommandError):
            parse_command("")

    def test_blank_raises(self):
        with pytest.raises(EmptyCommandError):
            parse_command("   \t ")

    def test_none_raises(self):
        with pytest.raises(TerminalError):
            parse_command(None)

    def test_command_is_immutable(self):
        command = parse_command("pwd")
        with pytest.raises(AttributeError):
            command.raw = "ls"  # type: ignore[misc]
