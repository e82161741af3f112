"""Terminal command executor: foreground, async and background execution."""

from __future__ import annotations

import asyncio
import logging
import subprocess
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable

from pyide_terminal.config import AppConfig
from pyide_terminal.errors import EmptyCommandError, SpawnError
from pyide_terminal.services.builtins import BuiltinDispatcher
from pyide_terminal.services.diagnostics import ErrorLogger
from pyide_terminal.services.history import HistoryStore
from pyide_terminal.services.parser import parse_command
from pyide_terminal.services.registry import ProcessRegistry
from pyide_terminal.services.runner import ProcessRunner, SubprocessRunner
from pyide_terminal.services.streams import start_reader
from pyide_terminal.storage.files import FileStorage
from pyide_terminal.storage.models import (
    CommandResult,
    LineBuffer,
    ProcessHandle,
    ProcessSnapshot,
    ProcessState,
)

logger = logging.getLogger(__name__)

INVALID_PROCESS_ID = -1

CommandCallback = Callable[[CommandResult], None]


class CommandExecutor:
    """Run terminal commands with history, builtins and process tracking."""

    def __init__(
        self,
        config: AppConfig,
        runner: ProcessRunner | None = None,
        history: HistoryStore | None = None,
        error_logger: ErrorLogger | None = None,
        registry: ProcessRegistry | None = None,
        max_workers: int | None = None,
    ) -> None:
        self.config = config
        self.runner = runner or SubprocessRunner()
        self.history = history or HistoryStore(
            FileStorage(config.history.path),
            max_entries=config.history.max_entries,
        )
        self.errors = error_logger or ErrorLogger(
            FileStorage(
                config.errors.path,
                max_bytes=config.errors.max_bytes,
                backup_count=config.errors.backup_count,
            ),
            window=config.errors.window,
        )
        self.registry = registry or ProcessRegistry(
            self.runner,
            kill_grace=config.shell.kill_grace,
            kill_force_wait=config.shell.kill_force_wait,
            finished_retention=config.shell.finished_retention,
        )
        self.builtins = BuiltinDispatcher(self.history, self.registry, kill=self.kill_process)
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="terminal")

    @property
    def working_dir(self) -> Path:
        return Path(self.config.shell.working_dir).expanduser().resolve()

    # --- Foreground ---

    def execute_command(self, command: str | None) -> CommandResult:
        """Run a command to completion. Never raises."""
        if command is None or not command.strip():
            return CommandResult(success=False, stderr="Empty command\n", command=command or "")

        self.history.add(command)
        logger.info("Executing command: %s", command)

        if self.builtins.matches(command):
            return self.builtins.dispatch(command)

        try:
            return self._run_foreground(command)
        except Exception as e:
            logger.exception("Command execution error")
            self.errors.log_error("EXECUTION", f"Error executing command: {command}", e)
            return CommandResult(success=False, stderr=f"Error executing command: {e}\n", command=command)

    def _run_foreground(self, command: str) -> CommandResult:
        parsed = parse_command(command)
        logger.debug("Spawning %s in %s", parsed.program, self.working_dir)

        start = time.monotonic()
        try:
            process = self.runner.spawn(parsed.args, cwd=self.working_dir)
        except SpawnError as e:
            self.errors.log_error("EXECUTION", f"Error executing command: {command}", e)
            return CommandResult(
                success=False,
                stderr=f"{e}\n",
                command=command,
                execution_time_ms=int((time.monotonic() - start) * 1000),
            )

        stdout, stderr = LineBuffer(), LineBuffer()
        # Readers must be draining before we block on exit
        readers = [
            start_reader(process.stdout, stdout, "stdout"),
            start_reader(process.stderr, stderr, "stderr"),
        ]

        timeout = self.config.shell.timeout or None
        exit_code = self.runner.wait(process, timeout=timeout)
        timed_out = exit_code is None
        if timed_out:
            self.runner.kill(process)
            exit_code = self.runner.wait(process, timeout=self.config.shell.kill_force_wait)
            for reader in readers:
                reader.join(timeout=self.config.shell.kill_force_wait)
        else:
            for reader in readers:
                reader.join()

        elapsed_ms = int((time.monotonic() - start) * 1000)
        max_out = self.config.shell.max_output
        stdout_text = stdout.text()[:max_out]
        stderr_text = stderr.text()[:max_out]

        if timed_out:
            message = f"Command timed out after {self.config.shell.timeout}s"
            stderr_text += message + "\n"
            self.errors.log_error("TIMEOUT", f"{message}: {command}")

        logger.info("Command finished: %s (exit code: %s)", command, exit_code)
        return CommandResult(
            success=not timed_out and exit_code == 0,
            stdout=stdout_text,
            stderr=stderr_text,
            command=command,
            execution_time_ms=elapsed_ms,
            exit_code=exit_code,
        )

    # --- Async ---

    def execute_command_async(self, command: str, callback: CommandCallback | None = None) -> Future[CommandResult]:
        """Run a command on the worker pool; ``callback`` gets the result."""
        future = self._pool.submit(self.execute_command, command)
        if callback is not None:
            future.add_done_callback(lambda f: callback(f.result()))
        return future

    async def run_command(self, command: str) -> CommandResult:
        """Awaitable form of execute_command for asyncio callers."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._pool, self.execute_command, command)

    # --- Background ---

    def execute_background_command(self, command: str) -> int:
        """Start a tracked background process and return its ID, or -1. Never raises."""
        try:
            return self._start_background(command)
        except (EmptyCommandError, SpawnError) as e:
            self.errors.log_error("EXECUTION", f"Failed to start background command: {command}", e)
        except Exception as e:
            logger.exception("Background command error")
            self.errors.log_error("EXECUTION", f"Failed to start background command: {command}", e)
        return INVALID_PROCESS_ID

    def _start_background(self, command: str) -> int:
        parsed = parse_command(command)
        process = self.runner.spawn(parsed.args, cwd=self.working_dir)
        try:
            handle = self._track(command, process)
        except Exception:
            self.runner.kill(process)
            raise
        self.errors.log_info(f"Started background command: {command} (PID: {handle.id})")
        return handle.id

    def _track(self, command: str, process: subprocess.Popen) -> ProcessHandle:
        self.history.add(command)
        handle = ProcessHandle(id=self.registry.next_id(), command=command, process=process)
        self.registry.register(handle)
        handle.readers = [
            start_reader(process.stdout, handle.stdout, f"stdout-{handle.id}"),
            start_reader(process.stderr, handle.stderr, f"stderr-{handle.id}"),
        ]
        threading.Thread(
            target=self._monitor,
            args=(handle,),
            name=f"monitor-{handle.id}",
            daemon=True,
        ).start()
        return handle

    def _monitor(self, handle: ProcessHandle) -> None:
        exit_code = self.runner.wait(handle.process)
        for reader in handle.readers:
            reader.join()
        self.registry.finish(handle.id, exit_code)

    def poll(self, process_id: int) -> CommandResult | None:
        """Output captured so far for a background process, or None if unknown."""
        handle = self.registry.get(process_id)
        if handle is None:
            return None
        snapshot = handle.snapshot()
        if snapshot.exit_code is not None:
            success = snapshot.exit_code == 0
        else:
            success = snapshot.state is ProcessState.RUNNING
        return CommandResult(
            success=success,
            stdout="".join(f"{line}\n" for line in snapshot.stdout),
            stderr="".join(f"{line}\n" for line in snapshot.stderr),
            command=snapshot.command,
            execution_time_ms=int(snapshot.elapsed * 1000),
            exit_code=snapshot.exit_code,
        )

    def get_active_processes(self) -> dict[int, ProcessSnapshot]:
        return self.registry.list()

    def kill_process(self, process_id: int) -> bool:
        known = process_id in self.registry
        stopped = self.registry.kill(process_id)
        if stopped:
            self.errors.log_info(f"Process stopped: {process_id}")
        elif known:
            self.errors.log_error("KILL", f"Could not confirm process {process_id} stopped")
        return stopped

    # --- Lifecycle ---

    def shutdown(self) -> None:
        """Stop the worker pool and every live background process."""
        self._pool.shutdown(wait=True, cancel_futures=True)
        self.registry.terminate_all()

    def __enter__(self) -> CommandExecutor:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()
