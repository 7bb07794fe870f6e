"""Blocking client the CLI uses to reach the daemon."""

import os
import socket
import subprocess
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from tooldjinn.daemon.paths import default_paths
from tooldjinn.daemon.protocol import ProtocolError, decode_message, serialize_request

STARTUP_WAIT_S = 5.0
STARTUP_POLL_S = 0.1
CONTROL_TIMEOUT_S = 5.0
HEALTH_TIMEOUT_S = 2.0


def _process_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists, owned by another user
        return True
    return True


class DaemonClient:
    """
    Opens one connection per request: write a line, read a line.

    Transport failures surface as OSError (missing socket, refused
    connection, timeout) or ProtocolError (garbled reply). Only the probing
    methods, health(), is_daemon_running() and shutdown(), swallow them.
    """

    def __init__(self, socket_path: Optional[Path] = None, timeout: Optional[float] = None):
        """
        Args:
            socket_path: Daemon socket; the standard location when omitted
            timeout: Socket timeout for tool calls. None waits as long as
                the command runs.
        """
        self.socket_path = socket_path or default_paths().socket
        self.timeout = timeout

    def health(self) -> Optional[Dict[str, Any]]:
        """Daemon stats, or None when nothing answers on the socket."""
        if not self.socket_path.exists():
            return None
        try:
            response = self._exchange("health", timeout=HEALTH_TIMEOUT_S)
        except (OSError, ProtocolError):
            return None
        return response.get("result") if response.get("status") == "ok" else None

    def is_daemon_running(self) -> bool:
        return self.health() is not None

    def ensure_daemon_running(self, auto_start: bool = True) -> bool:
        """
        Returns:
            True once a daemon answers, starting one first if allowed
        """
        if self.is_daemon_running():
            return True
        if not auto_start:
            return False
        self._clear_stale_files()
        return self._spawn()

    def call(
        self,
        tool: str,
        arguments: Optional[Dict[str, Any]] = None,
        cwd: Optional[str] = None,
        session_name: str = "default",
    ) -> Tuple[bool, Dict[str, Any]]:
        """
        Run a tool inside the daemon.

        Returns:
            (True, {"text", "is_error"}) when the daemon ran the call, or
            (False, {"error"}) when it rejected the request
        """
        response = self._exchange(
            "call",
            tool=tool,
            arguments=arguments,
            cwd=cwd or str(Path.cwd()),
            session_name=session_name,
            timeout=self.timeout,
        )
        if response.get("status") == "ok":
            return True, response.get("result") or {}
        return False, {"error": response.get("error") or "Unknown error"}

    def list_tools(self) -> Optional[List[Dict[str, Any]]]:
        response = self._exchange("list_tools", timeout=CONTROL_TIMEOUT_S)
        return response.get("result") if response.get("status") == "ok" else None

    def clear_session(self, session_name: str = "default") -> bool:
        response = self._exchange(
            "clear_session", session_name=session_name, timeout=CONTROL_TIMEOUT_S
        )
        return response.get("status") == "ok"

    def shutdown(self) -> bool:
        """Ask the daemon to exit. False when no daemon acknowledged."""
        try:
            response = self._exchange("shutdown", timeout=CONTROL_TIMEOUT_S)
        except (OSError, ProtocolError):
            return False
        return response.get("status") == "ok"

    def _clear_stale_files(self) -> None:
        """Remove the PID file and socket of a daemon that died without cleanup."""
        pid_path = default_paths().pid
        try:
            pid_text = pid_path.read_text().strip()
        except FileNotFoundError:
            return
        if pid_text.isdigit() and _process_alive(int(pid_text)):
            return
        pid_path.unlink(missing_ok=True)
        self.socket_path.unlink(missing_ok=True)

    def _spawn(self) -> bool:
        command = [sys.executable, "-m", "tooldjinn.daemon.server", "--daemonize"]
        if self.socket_path != default_paths().socket:
            command += ["--socket-path", str(self.socket_path)]
        try:
            subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError:
            return False

        deadline = time.monotonic() + STARTUP_WAIT_S
        while time.monotonic() < deadline:
            time.sleep(STARTUP_POLL_S)
            if self.is_daemon_running():
                return True
        return False

    def _exchange(
        self,
        command: str,
        tool: str = "",
        arguments: Optional[Dict[str, Any]] = None,
        cwd: str = "",
        session_name: str = "default",
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Raises:
            OSError: The socket is missing, refused the connection, or timed out
            ProtocolError: The daemon hung up without replying or sent garbage
        """
        payload = serialize_request(command, tool, arguments, cwd, session_name)
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
            sock.settimeout(timeout)
            sock.connect(str(self.socket_path))
            sock.sendall(payload)
            with sock.makefile("rb") as stream:
                line = stream.readline()
        if not line:
            raise ProtocolError("Daemon closed the connection without replying")
        return decode_message(line)


def is_daemon_enabled() -> bool:
    """
    False when TOOLDJINN_NO_DAEMON is 1/true/yes, and always on Windows,
    which has no Unix sockets here.
    """
    if os.environ.get("TOOLDJINN_NO_DAEMON", "").lower() in ("1", "true", "yes"):
        return False
    return sys.platform != "win32"
