"""Shared utility functions for create-another-app.

Provides the subprocess runner every external tool invocation goes through,
async filesystem helpers that surface ``OSError`` as ``FilesystemError``, JSON
I/O, and Rich-based progress reporting.
"""

from __future__ import annotations

import asyncio
import json
import subprocess
from pathlib import Path
from typing import Any, Sequence

from rich.console import Console
from rich.table import Table

from create_another_app.errors import FilesystemError, SubprocessError

console = Console()

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
) -> tuple[int, str, str]:
    """Run a command asynchronously and capture its output.

    External scaffolding tools are never given a deadline; the call waits for
    the child to exit.

    Args:
        cmd: Executable followed by its arguments.  No shell is involved.
        cwd: Working directory for the child process.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.

    Raises:
        OSError: If the executable cannot be spawned.
    """
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=str(cwd) if cwd else None,
    )
    stdout_bytes, stderr_bytes = await process.communicate()

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


def format_command(command: str, args: Sequence[str] = ()) -> str:
    """Render a command and its arguments as a single display string."""
    return " ".join([command, *args])


async def run(command: str, args: Sequence[str] = (), cwd: str | Path | None = None) -> str:
    """Run *command* with *args* in *cwd* and return its stdout.

    This is the single chokepoint for external tools and the package manager.

    Raises:
        SubprocessError: If the process exits non-zero or cannot be spawned.
    """
    display = format_command(command, args)
    try:
        returncode, stdout, stderr = await run_command([command, *args], cwd=cwd)
    except OSError as exc:
        raise SubprocessError(display, None, str(exc)) from exc
    if returncode != 0:
        raise SubprocessError(display, returncode, stderr or stdout)
    return stdout


def run_sync(command: str, args: Sequence[str] = (), cwd: str | Path | None = None) -> str:
    """Blocking counterpart of :func:`run` with identical failure semantics."""
    display = format_command(command, args)
    try:
        completed = subprocess.run(
            [command, *args],
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            errors="replace",
        )
    except OSError as exc:
        raise SubprocessError(display, None, str(exc)) from exc
    if completed.returncode != 0:
        raise SubprocessError(display, completed.returncode, completed.stderr or completed.stdout)
    return completed.stdout.strip()


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def _mkdir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _write(path: Path, content: str) -> None:
    path.write_text(content, encoding="utf-8")


async def make_dir(path: str | Path) -> Path:
    """Create a directory (and parents) if it does not exist.

    Raises:
        FilesystemError: On permission problems or when a file occupies the path.
    """
    dir_path = Path(path)
    try:
        await asyncio.to_thread(_mkdir, dir_path)
    except OSError as exc:
        raise FilesystemError(dir_path, exc) from exc
    return dir_path


async def write_text(path: str | Path, content: str) -> Path:
    """Write *content* to *path*.

    The parent directory must already exist; creating it is the caller's
    planned responsibility.

    Raises:
        FilesystemError: If the write fails.
    """
    file_path = Path(path)
    try:
        await asyncio.to_thread(_write, file_path, content)
    except OSError as exc:
        raise FilesystemError(file_path, exc) from exc
    return file_path


async def read_text(path: str | Path) -> str:
    """Read a UTF-8 text file, surfacing failures as ``FilesystemError``.

    Undecodable content counts as a failure too: files produced by external
    tools are not guaranteed to be UTF-8.
    """
    file_path = Path(path)
    try:
        return await asyncio.to_thread(file_path.read_text, "utf-8")
    except OSError as exc:
        raise FilesystemError(file_path, exc) from exc
    except UnicodeDecodeError as exc:
        raise FilesystemError(file_path, f"not valid UTF-8 ({exc.reason} at byte {exc.start})") from exc


def dump_json(data: dict[str, Any] | list[Any]) -> str:
    """Serialise *data* the way generated JSON files are laid out (2-space indent)."""
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


async def load_json(path: str | Path) -> dict[str, Any]:
    """Load and parse a JSON object from *path*.

    Raises:
        FilesystemError: If the file is missing, unreadable or not a JSON object.
    """
    raw = await read_text(path)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise FilesystemError(path, f"invalid JSON ({exc})") from exc
    if not isinstance(data, dict):
        raise FilesystemError(path, "expected a JSON object at the top level")
    return data


async def save_json(data: dict[str, Any] | list[Any], path: str | Path) -> Path:
    """Save data as pretty-printed JSON."""
    return await write_text(path, dump_json(data))


def is_empty_dir(path: Path) -> bool:
    """``True`` when *path* does not exist or is an empty directory."""
    if not path.exists():
        return True
    return path.is_dir() and not any(path.iterdir())


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_step(message: str) -> None:
    """Print a dim in-progress line."""
    console.print(f"[cyan]>[/cyan] {message}")


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()
