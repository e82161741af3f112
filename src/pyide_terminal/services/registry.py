"""Thread-safe registry of background processes."""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict

from pyide_terminal.services.runner import ProcessRunner
from pyide_terminal.storage.models import ProcessHandle, ProcessSnapshot, ProcessState

logger = logging.getLogger(__name__)


class ProcessRegistry:
    """Live background processes keyed by terminal-assigned ID.

    Handles move RUNNING -> TERMINATING -> TERMINATED on kill, or straight to
    TERMINATED on natural exit. Live handles are listed by ``list()``; handles
    that left the live table are kept in a bounded table so their output can
    still be polled.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        kill_grace: float = 3.0,
        kill_force_wait: float = 1.0,
        finished_retention: int = 32,
    ) -> None:
        self._runner = runner
        self.kill_grace = kill_grace
        self.kill_force_wait = kill_force_wait
        self.finished_retention = finished_retention
        self._live: dict[int, ProcessHandle] = {}
        self._finished: OrderedDict[int, ProcessHandle] = OrderedDict()
        self._next_id = 1
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            process_id = self._next_id
            self._next_id += 1
            return process_id

    def register(self, handle: ProcessHandle) -> None:
        with self._lock:
            self._live[handle.id] = handle

    def get(self, process_id: int) -> ProcessHandle | None:
        with self._lock:
            return self._live.get(process_id) or self._finished.get(process_id)

    def list(self) -> dict[int, ProcessSnapshot]:
        """Snapshot copies of all live handles, ordered by ID."""
        with self._lock:
            handles = sorted(self._live.values(), key=lambda h: h.id)
        return {h.id: h.snapshot() for h in handles}

    def __contains__(self, process_id: int) -> bool:
        with self._lock:
            return process_id in self._live

    def __len__(self) -> int:
        with self._lock:
            return len(self._live)

    def finish(self, process_id: int, exit_code: int | None) -> None:
        """Record process exit.

        Completes a live handle, or a killed one whose death was never
        confirmed. No-op for handles that are already TERMINATED or gone.
        """
        with self._lock:
            handle = self._live.pop(process_id, None)
            if handle is not None:
                self._retire(handle)
            else:
                handle = self._finished.get(process_id)
                if handle is None or handle.state is not ProcessState.TERMINATING:
                    return
            handle.exit_code = exit_code
            handle.end_time = time.time()
            handle.state = ProcessState.TERMINATED
        logger.info("Background process %d exited (exit code: %s)", process_id, exit_code)

    def kill(self, process_id: int) -> bool:
        """Terminate a live process; escalate to a forced kill if needed.

        The handle leaves the live table once termination has been requested,
        even if death cannot be confirmed. Returns True iff the process is
        confirmed dead.
        """
        with self._lock:
            handle = self._live.pop(process_id, None)
            if handle is None:
                return False
            handle.state = ProcessState.TERMINATING
            self._retire(handle)

        process = handle.process
        self._runner.terminate(process)
        exit_code = self._runner.wait(process, timeout=self.kill_grace)
        if exit_code is None:
            logger.warning("Process %d ignored terminate, forcing kill", process_id)
            self._runner.kill(process)
            exit_code = self._runner.wait(process, timeout=self.kill_force_wait)

        if exit_code is None:
            logger.error("Process %d still alive after forced kill", process_id)
            return False

        with self._lock:
            handle.exit_code = exit_code
            handle.end_time = time.time()
            handle.state = ProcessState.TERMINATED
        logger.info("Killed background process %d", process_id)
        return True

    def terminate_all(self) -> None:
        with self._lock:
            ids = list(self._live)
        for process_id in ids:
            self.kill(process_id)

    def _retire(self, handle: ProcessHandle) -> None:
        self._finished[handle.id] = handle
        while len(self._finished) > self.finished_retention:
            self._finished.popitem(last=False)
