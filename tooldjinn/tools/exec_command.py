"""External command execution for tool calls (no shell, captured output)."""

import logging
import os
import subprocess
import time
from pathlib import Path
from typing import Dict, Optional, Sequence

from tooldjinn.core.errors import CommandSpawnError, WorkingDirectoryError
from tooldjinn.core.types import CommandResult

logger = logging.getLogger(__name__)


def resolve_working_directory(working_directory: Optional[str] = None) -> Path:
    """
    Resolve the directory a command should run in.

    Relative paths are resolved against the current process directory.

    Raises:
        WorkingDirectoryError: If the path does not exist or is not a directory
    """
    cwd = Path.cwd()
    if working_directory:
        candidate = Path(working_directory).expanduser()
        resolved = candidate if candidate.is_absolute() else (cwd / candidate).resolve()
    else:
        resolved = cwd

    if not resolved.is_dir():
        raise WorkingDirectoryError(
            f"Working directory does not exist or is not a directory: {resolved}"
        )
    return resolved


def _get_command_env() -> Dict[str, str]:
    """
    Get environment for tool commands.

    Forces the C locale so parsed output is stable, and disables pagers
    so commands never wait on a terminal.
    """
    env = os.environ.copy()
    env.update({
        'LC_ALL': 'C',
        'LANG': 'C',
        'PAGER': 'cat',
        'GIT_PAGER': 'cat',
        'GIT_TERMINAL_PROMPT': '0',
    })
    return env


def run_command(
    binary: str,
    args: Sequence[str],
    working_directory: Optional[str] = None,
) -> CommandResult:
    """
    Run `binary` with `args` and capture its output.

    The process always runs to completion; there is no timeout. A
    non-zero exit is not an error here, it is reported in the result.

    Args:
        binary: Executable name or path (e.g. "git")
        args: Arguments after the binary
        working_directory: Directory override (validated before spawning)

    Returns:
        CommandResult with decoded stdout/stderr and duration

    Raises:
        WorkingDirectoryError: Invalid working directory
        CommandSpawnError: The binary could not be started
    """
    cwd = resolve_working_directory(working_directory)
    argv = [binary, *args]
    logger.debug("Running %s in %s", argv, cwd)

    start = time.monotonic()
    try:
        completed = subprocess.run(
            argv,
            cwd=str(cwd),
            env=_get_command_env(),
            stdin=subprocess.DEVNULL,
            capture_output=True,
            shell=False,
        )
    except OSError as e:
        logger.error("Failed to start %s: %s", binary, e)
        raise CommandSpawnError(binary, str(e)) from e

    duration_ms = int((time.monotonic() - start) * 1000)
    # Negative return codes mean the process was killed by a signal
    exit_code = completed.returncode if completed.returncode >= 0 else None
    return CommandResult(
        stdout=completed.stdout.decode("utf-8", errors="replace"),
        stderr=completed.stderr.decode("utf-8", errors="replace"),
        exit_code=exit_code,
        duration_ms=duration_ms,
        working_directory=cwd,
    )
