"""System utility checks."""

from __future__ import annotations

import platform
import shutil
import subprocess
from pathlib import Path

from pyide_terminal.utils.formatting import format_file_size

PYTHON_HINTS = ("print(", "import ", "from ", "def ", "class ")


def check_python() -> tuple[bool, str]:
    """Check if a Python interpreter is on PATH and return its version."""
    python_path = shutil.which("python3") or shutil.which("python")
    if not python_path:
        return False, "Python interpreter not found on PATH"
    try:
        result = subprocess.run(
            [python_path, "--version"],
            capture_output=True,
            text=True,
            timeout=10,
        )
        version = result.stdout.strip() or result.stderr.strip()
        return True, version
    except subprocess.TimeoutExpired:
        return False, "Python version check timed out"
    except Exception as e:
        return False, f"Error checking Python: {e}"


def system_info(path: str | Path) -> str:
    """Describe the host, the Python interpreter and the disk holding ``path``."""
    resolved = Path(path).expanduser().resolve()
    lines = [
        "System information:",
        f"Platform: {platform.system()} {platform.release()}",
        f"Machine: {platform.machine()}",
    ]
    available, version = check_python()
    lines.append(f"Python: {version if available else 'not available'}")
    try:
        usage = shutil.disk_usage(resolved)
    except OSError as e:
        lines.append(f"Disk: unavailable ({e})")
    else:
        lines.append(f"Disk free: {format_file_size(usage.free)}")
        lines.append(f"Disk used: {format_file_size(usage.used)}")
        lines.append(f"Disk total: {format_file_size(usage.total)}")
    return "\n".join(lines) + "\n"


def is_python_code(text: str | None) -> bool:
    """Guess whether input is Python source typed at the prompt.

    Interpreter invocations such as ``python3 -c ...`` or ``pytest`` are
    programs, not code.
    """
    if not text:
        return False
    return text.strip().startswith(PYTHON_HINTS)

