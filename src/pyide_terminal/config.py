"""Configuration management using TOML + environment variables."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

import tomli_w

CONFIG_DIR = Path.home() / ".pyide-terminal"
CONFIG_FILE = CONFIG_DIR / "config.toml"


@dataclass
class ShellConfig:
    working_dir: str = "~"
    timeout: int = 30
    kill_grace: float = 3.0
    kill_force_wait: float = 1.0
    max_output: int = 65536
    finished_retention: int = 32


@dataclass
class HistoryConfig:
    path: str = "~/.pyide-terminal/terminal_history.txt"
    max_entries: int = 100


@dataclass
class ErrorLogConfig:
    path: str = "~/.pyide-terminal/terminal_errors.txt"
    window: int = 50
    max_bytes: int = 1024 * 1024
    backup_count: int = 3


@dataclass
class LoggingConfig:
    level: str = "WARNING"
    file: str = "~/.pyide-terminal/terminal.log"


@dataclass
class AppConfig:
    shell: ShellConfig = field(default_factory=ShellConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    errors: ErrorLogConfig = field(default_factory=ErrorLogConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def sections(self) -> dict[str, object]:
        return {"shell": self.shell, "history": self.history, "errors": self.errors, "logging": self.logging}


def ensure_config_dir() -> None:
    """Create config directory with secure permissions."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    os.chmod(CONFIG_DIR, 0o700)


def load_config() -> AppConfig:
    """Load configuration from TOML file with env var overrides."""
    config = AppConfig()

    if CONFIG_FILE.exists():
        with open(CONFIG_FILE, "rb") as f:
            data = tomllib.load(f)

        shell = data.get("shell", {})
        config.shell.working_dir = shell.get("working_dir", config.shell.working_dir)
        config.shell.timeout = shell.get("timeout", config.shell.timeout)
        config.shell.kill_grace = shell.get("kill_grace", config.shell.kill_grace)
        config.shell.kill_force_wait = shell.get("kill_force_wait", config.shell.kill_force_wait)
        config.shell.max_output = shell.get("max_output", config.shell.max_output)
        config.shell.finished_retention = shell.get("finished_retention", config.shell.finished_retention)

        history = data.get("history", {})
        config.history.path = history.get("path", config.history.path)
        config.history.max_entries = history.get("max_entries", config.history.max_entries)

        errors = data.get("errors", {})
        config.errors.path = errors.get("path", config.errors.path)
        config.errors.window = errors.get("window", config.errors.window)
        config.errors.max_bytes = errors.get("max_bytes", config.errors.max_bytes)
        config.errors.backup_count = errors.get("backup_count", config.errors.backup_count)

        logging_cfg = data.get("logging", {})
        config.logging.level = logging_cfg.get("level", config.logging.level)
        config.logging.file = logging_cfg.get("file", config.logging.file)

    # Environment variable overrides
    if env_workdir := os.environ.get("PYIDE_TERMINAL_WORKING_DIR"):
        config.shell.working_dir = env_workdir
    if env_timeout := os.environ.get("PYIDE_TERMINAL_TIMEOUT"):
        config.shell.timeout = int(env_timeout)
    if env_history := os.environ.get("PYIDE_TERMINAL_HISTORY_PATH"):
        config.history.path = env_history
    if env_history_size := os.environ.get("PYIDE_TERMINAL_HISTORY_SIZE"):
        config.history.max_entries = int(env_history_size)
    if env_errors := os.environ.get("PYIDE_TERMINAL_ERROR_LOG"):
        config.errors.path = env_errors
    if env_max_bytes := os.environ.get("PYIDE_TERMINAL_ERROR_LOG_MAX_BYTES"):
        config.errors.max_bytes = int(env_max_bytes)
    if env_log_level := os.environ.get("PYIDE_TERMINAL_LOG_LEVEL"):
        config.logging.level = env_log_level
    if env_log_file := os.environ.get("PYIDE_TERMINAL_LOG_FILE"):
        config.logging.file = env_log_file

    return config


def save_config(config: AppConfig) -> None:
    """Save configuration to TOML file."""
    ensure_config_dir()

    data = {
        "shell": {
            "working_dir": config.shell.working_dir,
            "timeout": config.shell.timeout,
            "kill_grace": config.shell.kill_grace,
            "kill_force_wait": config.shell.kill_force_wait,
            "max_output": config.shell.max_output,
            "finished_retention": config.shell.finished_retention,
        },
        "history": {
            "path": config.history.path,
            "max_entries": config.history.max_entries,
        },
        "errors": {
            "path": config.errors.path,
            "window": config.errors.window,
            "max_bytes": config.errors.max_bytes,
            "backup_count": config.errors.backup_count,
        },
        "logging": {
            "level": config.logging.level,
            "file": config.logging.file,
        },
    }

    with open(CONFIG_FILE, "wb") as f:
        tomli_w.dump(data, f)

    os.chmod(CONFIG_FILE, 0o600)


# Global singleton
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or load the global config singleton."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset the global config (for testing)."""
    global _config
    _config = None
