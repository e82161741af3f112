"""CLI entry point using typer."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pyide_terminal import __version__
from pyide_terminal.config import (
    CONFIG_FILE,
    AppConfig,
    ensure_config_dir,
    load_config,
    save_config,
)
from pyide_terminal.services.diagnostics import analyze, suggest_solutions
from pyide_terminal.services.executor import INVALID_PROCESS_ID, CommandExecutor
from pyide_terminal.storage.models import CommandResult
from pyide_terminal.utils.formatting import format_result
from pyide_terminal.utils.system import check_python, is_python_code, system_info

app = typer.Typer(
    name="pyide-terminal",
    help="Embedded command terminal for the Python IDE.",
    add_completion=False,
)
console = Console()

PROMPT = "[bold green]$ python-ide>[/bold green] "


def _setup_logging(config: AppConfig) -> None:
    log_path = Path(config.logging.file).expanduser().resolve()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.FileHandler(str(log_path))],
    )


def _make_executor() -> CommandExecutor:
    config = load_config()
    _setup_logging(config)
    return CommandExecutor(config)


def _print_result(result: CommandResult) -> None:
    style = None if result.success else "red"
    console.print(escape(format_result(result)), style=style, highlight=False)
    if not result.success and result.stderr:
        for solution in suggest_solutions(result.stderr):
            console.print(f"  [dim]hint: {escape(solution)}[/dim]")
    if not result.success and is_python_code(result.command):
        console.print("  [dim]hint: run Python code with: python3 -c <code>[/dim]")


@app.command()
def run(
    command: list[str] = typer.Argument(..., help="Command and arguments"),
) -> None:
    """Run a single command in the foreground."""
    with _make_executor() as executor:
        result = executor.execute_command(" ".join(command))
    _print_result(result)
    if not result.success:
        raise typer.Exit(1)


@app.command()
def shell() -> None:
    """Interactive terminal session.

    Builtins: clear, exit/quit, history, help, ps, kill <id>.
    Append '&' to run a command in the background, '!N' recalls history
    entry N and ':out <id>' shows a background process's output.
    """
    console.print(f"[bold]Python IDE Terminal v{__version__}[/bold]")
    console.print("Type [bold]help[/bold] for builtin commands.\n")

    with _make_executor() as executor:
        while True:
            try:
                line = console.input(PROMPT).strip()
            except (EOFError, KeyboardInterrupt):
                console.print()
                break
            if not line:
                continue

            if line.startswith("!"):
                recalled = _recall(executor, line[1:])
                if recalled is None:
                    console.print(f"[red]No history entry: {escape(line)}[/red]")
                    continue
                console.print(escape(recalled), style="dim", highlight=False)
                line = recalled

            if line.startswith(":out"):
                _show_background_output(executor, line[4:].strip())
                continue

            if line.endswith("&"):
                process_id = executor.execute_background_command(line[:-1].strip())
                if process_id == INVALID_PROCESS_ID:
                    console.print("[red]Failed to start background command.[/red]")
                else:
                    console.print(escape(f"[{process_id}] started"))
                continue

            result = executor.execute_command(line)
            if result.action == "clear":
                console.clear()
                continue
            _print_result(result)
            if result.action == "exit":
                break


def _recall(executor: CommandExecutor, ref: str) -> str | None:
    try:
        index = int(ref)
    except ValueError:
        return None
    return executor.history.get(index - 1)


def _show_background_output(executor: CommandExecutor, ref: str) -> None:
    try:
        process_id = int(ref)
    except ValueError:
        console.print("[red]Usage: :out <id>[/red]")
        return
    result = executor.poll(process_id)
    if result is None:
        console.print(f"[red]Unknown process: {process_id}[/red]")
        return
    status = "running" if result.exit_code is None else f"exit code {result.exit_code}"
    console.print(f"[bold]{process_id}[/bold] {escape(result.command)} ({status})")
    console.print(escape(result.output or "(no output)"), highlight=False)


@app.command()
def history(
    clear: bool = typer.Option(False, "--clear", help="Delete the command history"),
) -> None:
    """Show or clear the command history."""
    with _make_executor() as executor:
        if clear:
            executor.history.clear()
            console.print("[green]History cleared.[/green]")
            return

        entries = executor.history.entries()
    if not entries:
        console.print("[dim]History is empty.[/dim]")
        return

    table = Table(title="Command history")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Command", style="green")
    for i, entry in enumerate(entries, start=1):
        table.add_row(str(i), entry)
    console.print(table)


@app.command()
def errors(
    count: int = typer.Option(10, "--lines", "-n", help="Number of recent errors"),
    stats: bool = typer.Option(False, "--stats", help="Show per-category statistics"),
    clear: bool = typer.Option(False, "--clear", help="Delete the error log"),
) -> None:
    """Show recent errors from the error log."""
    with _make_executor() as executor:
        if clear:
            executor.errors.clear()
            console.print("[green]Error log cleared.[/green]")
            return
        if stats:
            console.print(executor.errors.statistics(), highlight=False)
            return
        entries = executor.errors.recent_errors(count)

    if not entries:
        console.print("[dim]No errors recorded.[/dim]")
        return

    table = Table(title="Recent errors")
    table.add_column("Time", style="cyan")
    table.add_column("Category", style="yellow")
    table.add_column("Message")
    for entry in entries:
        table.add_row(entry.formatted_time, entry.category, entry.message)
    console.print(table)


@app.command("analyze")
def analyze_command(
    message: list[str] = typer.Argument(..., help="Error message text"),
) -> None:
    """Diagnose an error message."""
    text = " ".join(message)
    console.print(escape(analyze(text).render()), highlight=False)
    solutions = suggest_solutions(text)
    if solutions:
        console.print("Specific fixes:")
        for solution in solutions:
            console.print(f"  - {escape(solution)}")


@app.command()
def config(
    key: str = typer.Argument(None, help="Config key (e.g., shell.timeout)"),
    value: str = typer.Argument(None, help="New value"),
) -> None:
    """View or modify configuration."""
    cfg = load_config()

    if key is None:
        table = Table(title="Configuration")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")
        for section_name, section in cfg.sections().items():
            for attr, current in vars(section).items():
                table.add_row(f"{section_name}.{attr}", str(current))
        console.print(table)
        return

    if value is None:
        console.print("[red]Usage: pyide-terminal config <key> <value>[/red]")
        raise typer.Exit(1)

    parts = key.split(".")
    if len(parts) != 2:
        console.print("[red]Key format: section.key (e.g., shell.timeout)[/red]")
        raise typer.Exit(1)

    section_name, attr = parts
    section_map = cfg.sections()
    if section_name not in section_map:
        console.print(f"[red]Unknown section: {section_name}[/red]")
        raise typer.Exit(1)

    obj = section_map[section_name]
    if not hasattr(obj, attr):
        console.print(f"[red]Unknown key: {key}[/red]")
        raise typer.Exit(1)

    # Type coercion
    current = getattr(obj, attr)
    try:
        if isinstance(current, bool):
            typed_value = value.lower() in ("true", "1", "yes")
        elif isinstance(current, int):
            typed_value = int(value)
        elif isinstance(current, float):
            typed_value = float(value)
        else:
            typed_value = value
    except ValueError:
        console.print(f"[red]Invalid value type for {key}[/red]")
        raise typer.Exit(1)

    setattr(obj, attr, typed_value)
    save_config(cfg)
    console.print(f"[green]{key} = {typed_value}[/green]")


@app.command()
def logs(
    lines: int = typer.Option(50, "--lines", "-n", help="Number of lines"),
) -> None:
    """View the engine's diagnostic log."""
    log_path = Path(load_config().logging.file).expanduser().resolve()
    if not log_path.exists():
        console.print("[dim]No log file found.[/dim]")
        return

    content = log_path.read_text()
    log_lines = content.strip().split("\n")
    for line in log_lines[-lines:]:
        console.print(escape(line), highlight=False)


@app.command()
def info() -> None:
    """Show system and interpreter information."""
    cfg = load_config()
    console.print(system_info(cfg.shell.working_dir), highlight=False)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"pyide-terminal v{__version__}")

    installed, version_info = check_python()
    if installed:
        console.print(f"Python on PATH: {version_info}")
    else:
        console.print("Python on PATH: [yellow]not found[/yellow]")

    console.print(f"Python: {sys.version.split()[0]}")
    console.print(f"Config: {CONFIG_FILE}")


@app.command()
def init() -> None:
    """Write a default configuration file."""
    if CONFIG_FILE.exists():
        console.print(f"[yellow]Configuration already exists: {CONFIG_FILE}[/yellow]")
        raise typer.Exit(1)
    ensure_config_dir()
    save_config(AppConfig())
    console.print(f"[green]Configuration saved to {CONFIG_FILE}[/green]")


if __name__ == "__main__":
    app()
