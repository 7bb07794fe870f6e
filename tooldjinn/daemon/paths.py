"""Where the daemon keeps its socket, PID file and log."""

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class DaemonPaths:
    socket: Path
    pid: Path
    log: Path

    @classmethod
    def under(cls, directory: Path) -> "DaemonPaths":
        return cls(
            socket=directory / "daemon.sock",
            pid=directory / "daemon.pid",
            log=directory / "daemon.log",
        )


def default_paths() -> DaemonPaths:
    """Files under $TOOLDJINN_DAEMON_DIR, or ~/.config/tooldjinn when unset."""
    override = os.environ.get("TOOLDJINN_DAEMON_DIR", "").strip()
    directory = Path(override).expanduser() if override else Path.home() / ".config" / "tooldjinn"
    return DaemonPaths.under(directory)
