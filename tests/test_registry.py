"""Tests for the background process registry."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from pyide_terminal.services.registry import ProcessRegistry
from pyide_terminal.storage.models import ProcessHandle, ProcessSnapshot, ProcessState


@pytest.fixture
def runner():
    return MagicMock()


@pytest.fixture
def registry(runner):
    return ProcessRegistry(runner, kill_grace=3.0, kill_force_wait=1.0, finished_retention=2)


def make_handle(registry: ProcessRegistry, command: str = "sleep 100") -> ProcessHandle:
    process = MagicMock()
    process.poll.return_value = None
    handle = ProcessHandle(id=registry.next_id(), command=command, process=process)
    registry.register(handle)
    return handle


class TestProcessRegistry:
    def test_ids_strictly_increasing(self, registry):
        ids = [registry.next_id() for _ in range(5)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 5

    def test_list_returns_snapshots(self, registry):
        handle = make_handle(registry)
        listing = registry.list()
        assert list(listing) == [handle.id]
        snapshot = listing[handle.id]
        assert isinstance(snapshot, ProcessSnapshot)
        assert snapshot.running

        handle.stdout.append("later")
        assert snapshot.stdout == ()

    def test_list_is_not_live_view(self, registry):
        make_handle(registry)
        listing = registry.list()
        make_handle(registry)
        assert len(listing) == 1
        assert len(registry) == 2

    def test_kill_unknown_returns_false(self, registry, runner):
        assert registry.kill(42) is False
        runner.terminate.assert_not_called()

    def test_kill_graceful(self, registry, runner):
        runner.wait.return_value = -15
        handle = make_handle(registry)

        assert registry.kill(handle.id) is True
        runner.terminate.assert_called_once_with(handle.process)
        runner.kill.assert_not_called()
        runner.wait.assert_called_once_with(handle.process, timeout=3.0)
        assert handle.id not in registry
        assert handle.state is ProcessState.TERMINATED
        assert handle.exit_code == -15

    def test_kill_escalates(self, registry, runner):
        runner.wait.side_effect = [None, -9]
        handle = make_handle(registry)

        assert registry.kill(handle.id) is True
        runner.kill.assert_called_once_with(handle.process)
        assert handle.state is ProcessState.TERMINATED

    def test_kill_unconfirmed_still_removes(self, registry, runner):
        runner.wait.side_effect = [None, None]
        handle = make_handle(registry)

        assert registry.kill(handle.id) is False
        assert handle.id not in registry
        assert handle.state is ProcessState.TERMINATING
        assert registry.get(handle.id) is handle

    def test_second_kill_returns_false(self, registry, runner):
        runner.wait.return_value = 0
        handle = make_handle(registry)
        registry.kill(handle.id)
        assert registry.kill(handle.id) is False

    def test_finish(self, registry):
        handle = make_handle(registry)
        registry.finish(handle.id, 0)
        assert handle.id not in registry
        assert handle.state is ProcessState.TERMINATED
        assert handle.exit_code == 0
        assert handle.end_time is not None
        assert registry.get(handle.id) is handle

    def test_finish_after_kill_is_noop(self, registry, runner):
        runner.wait.return_value = -15
        handle = make_handle(registry)
        registry.kill(handle.id)
        registry.finish(handle.id, 0)
        assert handle.exit_code == -15

    def test_finish_completes_unconfirmed_kill(self, registry, runner):
        runner.wait.return_value = None
        handle = make_handle(registry)
        assert registry.kill(handle.id) is False
        assert handle.state is ProcessState.TERMINATING

        registry.finish(handle.id, 0)
        assert handle.state is ProcessState.TERMINATED
        assert handle.exit_code == 0
        assert handle.end_time is not None

    def test_finish_unknown_is_noop(self, registry):
        registry.finish(42, 0)
        assert registry.get(42) is None

    def test_finished_retention_bounded(self, registry):
        handles = [make_handle(registry) for _ in range(3)]
        for handle in handles:
            registry.finish(handle.id, 0)
        assert registry.get(handles[0].id) is None
        assert registry.get(handles[2].id) is handles[2]

    def test_terminate_all(self, registry, runner):
        runner.wait.return_value = 0
        for _ in range(3):
            make_handle(registry)
        registry.terminate_all()
        assert len(registry) == 0
        assert runner.terminate.call_count == 3
