"""Shared test fixtures."""

from __future__ import annotations

import sys
import time

import pytest

from pyide_terminal.config import AppConfig, ErrorLogConfig, HistoryConfig, LoggingConfig, ShellConfig
from pyide_terminal.services.executor import CommandExecutor


@pytest.fixture
def app_config(tmp_path):
    """Create a test configuration."""
    work_dir = tmp_path / "work"
    work_dir.mkdir()
    return AppConfig(
        shell=ShellConfig(working_dir=str(work_dir), timeout=10, kill_grace=3.0, kill_force_wait=1.0),
        history=HistoryConfig(path=str(tmp_path / "history.txt"), max_entries=100),
        errors=ErrorLogConfig(path=str(tmp_path / "errors.txt"), window=50),
        logging=LoggingConfig(level="DEBUG", file=str(tmp_path / "test.log")),
    )


@pytest.fixture
def executor(app_config):
    executor = CommandExecutor(app_config)
    yield executor
    executor.shutdown()


@pytest.fixture
def py():
    """Build a command line running a space-free Python snippet."""

    def build(code: str) -> str:
        return f"{sys.executable} -c {code}"

    return build


@pytest.fixture
def wait_until():
    def wait(predicate, timeout: float = 10.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(0.05)
        return predicate()

    return wait
