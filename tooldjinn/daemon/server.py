"""
Unix-socket daemon that holds session response slots between CLI calls.

Each connection carries exactly one request. Tool calls run in the default
executor because they block on a child process, so a slow `dotnet test`
never stops the loop from answering health checks.

Start it with `tool-djinn daemon start`, or directly:

    python -m tooldjinn.daemon.server [--socket-path PATH] [--idle-timeout SECONDS]
"""

import argparse
import asyncio
import logging
import os
import signal
import sys
import time
from functools import partial
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional

from tooldjinn.core.configs import load_raw_config
from tooldjinn.core.errors import UnknownToolError
from tooldjinn.daemon.paths import default_paths
from tooldjinn.daemon.protocol import (
    MAX_MESSAGE_BYTES,
    ProtocolError,
    decode_message,
    serialize_response,
)
from tooldjinn.daemon.state import DaemonState
from tooldjinn.tools.registry import build_tool_schema, dispatch, get_tool

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

DEFAULT_IDLE_TIMEOUT_S = 3600.0
READ_TIMEOUT_S = 30.0
IDLE_CHECK_INTERVAL_S = 60.0

Handler = Callable[[Dict[str, Any]], Awaitable[bytes]]


def with_client_cwd(tool: str, arguments: Dict[str, Any], cwd: str) -> Dict[str, Any]:
    """
    Anchor the working directory to the client's cwd.

    The daemon's own cwd is wherever it was started, so a missing or
    relative working_directory is resolved against the directory the
    client was invoked from.
    """
    if not cwd:
        return arguments
    try:
        spec = get_tool(tool)
    except UnknownToolError:
        return arguments
    if "working_directory" not in spec.parameters["properties"]:
        return arguments

    requested = arguments.get("working_directory")
    if not isinstance(requested, str) or not requested.strip():
        return {**arguments, "working_directory": cwd}
    requested_path = Path(requested.strip()).expanduser()
    if requested_path.is_absolute():
        return arguments
    return {**arguments, "working_directory": str(Path(cwd) / requested_path)}


class DaemonServer:
    def __init__(
        self,
        socket_path: Optional[Path] = None,
        pid_path: Optional[Path] = None,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT_S,
    ):
        """
        Args:
            socket_path: Socket to listen on
            pid_path: File that records the daemon's PID while it runs
            idle_timeout: Seconds without a request before exiting; 0 disables
        """
        paths = default_paths()
        self.socket_path = socket_path or paths.socket
        self.pid_path = pid_path or paths.pid
        self.idle_timeout = idle_timeout

        self.state: Optional[DaemonState] = None
        self.last_request_time = time.monotonic()
        self._shutdown_event = asyncio.Event()
        self._routes: Dict[str, Handler] = {
            "call": self._handle_call,
            "list_tools": self._handle_list_tools,
            "clear_session": self._handle_clear_session,
            "health": self._handle_health,
            "shutdown": self._handle_shutdown,
        }

    async def start(self) -> None:
        """Serve until a shutdown request, SIGTERM/SIGINT, or the idle timeout."""
        try:
            self.state = DaemonState(load_raw_config())
        except ValueError as e:
            logger.error("Refusing to start with invalid configuration: %s", e)
            sys.exit(1)

        self._claim_files()
        server = await asyncio.start_unix_server(
            self._serve_connection,
            path=str(self.socket_path),
            limit=MAX_MESSAGE_BYTES,
        )
        os.chmod(self.socket_path, 0o600)
        logger.info("Listening on %s as pid %d", self.socket_path, os.getpid())

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self.request_shutdown, sig.name)
        watcher = asyncio.create_task(self._watch_idle()) if self.idle_timeout > 0 else None

        try:
            async with server:
                await self._shutdown_event.wait()
        finally:
            if watcher is not None:
                watcher.cancel()
            self._release_files()
            logger.info("Stopped after %d tool calls", self.state.calls_handled)

    def request_shutdown(self, reason: str) -> None:
        logger.info("Shutting down: %s", reason)
        self._shutdown_event.set()

    def _claim_files(self) -> None:
        self.socket_path.parent.mkdir(parents=True, exist_ok=True)
        # A socket left by a crashed daemon would make bind() fail
        self.socket_path.unlink(missing_ok=True)
        self.pid_path.parent.mkdir(parents=True, exist_ok=True)
        self.pid_path.write_text(str(os.getpid()))

    def _release_files(self) -> None:
        self.socket_path.unlink(missing_ok=True)
        self.pid_path.unlink(missing_ok=True)

    async def _watch_idle(self) -> None:
        interval = min(IDLE_CHECK_INTERVAL_S, self.idle_timeout)
        while not self._shutdown_event.is_set():
            await asyncio.sleep(interval)
            idle = time.monotonic() - self.last_request_time
            if idle > self.idle_timeout:
                self.request_shutdown(f"no requests for {idle:.0f}s")
                return

    async def _serve_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        try:
            reply = await self._answer(reader)
            if reply is not None:
                writer.write(reply)
                await writer.drain()
        except Exception:
            logger.exception("Failed to serve a client connection")
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass  # client already hung up

    async def _answer(self, reader: asyncio.StreamReader) -> Optional[bytes]:
        try:
            line = await asyncio.wait_for(reader.readline(), timeout=READ_TIMEOUT_S)
        except asyncio.TimeoutError:
            logger.warning("Dropping client that sent nothing for %.0fs", READ_TIMEOUT_S)
            return None
        except ValueError:
            # StreamReader.readline() reports an over-limit line this way
            return serialize_response(
                "error", error=f"Request larger than {MAX_MESSAGE_BYTES} bytes"
            )
        if not line:
            return None

        self.last_request_time = time.monotonic()
        try:
            request = decode_message(line)
        except ProtocolError as e:
            return serialize_response("error", error=str(e))
        return await self.handle_request(request)

    async def handle_request(self, request: Dict[str, Any]) -> bytes:
        """Route a decoded request to its handler."""
        command = request.get("command", "")
        handler = self._routes.get(command)
        if handler is None:
            return serialize_response("error", error=f"Unknown command: {command}")
        return await handler(request)

    async def _handle_call(self, request: Dict[str, Any]) -> bytes:
        tool = request.get("tool", "")
        if not tool:
            return serialize_response("error", error="Missing 'tool' parameter")
        arguments = request.get("arguments") or {}
        if not isinstance(arguments, dict):
            return serialize_response("error", error="'arguments' must be an object")

        arguments = with_client_cwd(tool, arguments, request.get("cwd", ""))
        sessions = self.state.get_sessions(request.get("session_name") or "default")

        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(
            None,
            partial(dispatch, tool, arguments, sessions, self.state.settings),
        )
        self.state.calls_handled += 1
        return serialize_response("ok", result=response.to_dict())

    async def _handle_list_tools(self, request: Dict[str, Any]) -> bytes:
        return serialize_response("ok", result=build_tool_schema())

    async def _handle_clear_session(self, request: Dict[str, Any]) -> bytes:
        cleared = self.state.clear_session(request.get("session_name") or "default")
        return serialize_response("ok", result={"cleared": cleared})

    async def _handle_health(self, request: Dict[str, Any]) -> bytes:
        return serialize_response("ok", result=self.state.get_stats() if self.state else {})

    async def _handle_shutdown(self, request: Dict[str, Any]) -> bytes:
        self.request_shutdown("requested by client")
        return serialize_response("ok", result={"message": "Shutting down"})


def _detach(log_path: Path) -> None:
    """Leave the controlling terminal and send stdout/stderr to log_path."""
    if os.fork() > 0:
        os._exit(0)
    os.setsid()
    if os.fork() > 0:
        os._exit(0)

    log_path.parent.mkdir(parents=True, exist_ok=True)
    log_fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
    null_fd = os.open(os.devnull, os.O_RDONLY)
    os.dup2(null_fd, 0)
    os.dup2(log_fd, 1)
    os.dup2(log_fd, 2)
    os.close(null_fd)
    os.close(log_fd)


def run_daemon(
    socket_path: Optional[str] = None,
    idle_timeout: float = DEFAULT_IDLE_TIMEOUT_S,
    daemonize: bool = False,
) -> None:
    paths = default_paths()
    if daemonize:
        _detach(paths.log)

    server = DaemonServer(
        socket_path=Path(socket_path) if socket_path else paths.socket,
        pid_path=paths.pid,
        idle_timeout=idle_timeout,
    )
    asyncio.run(server.start())


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="python -m tooldjinn.daemon.server",
        description="Keep Tool Djinn session state alive between CLI calls.",
    )
    parser.add_argument("--socket-path", help="listen on this socket instead of the default")
    parser.add_argument(
        "--idle-timeout",
        type=float,
        default=DEFAULT_IDLE_TIMEOUT_S,
        metavar="SECONDS",
        help="exit after this long without a request; 0 keeps running",
    )
    parser.add_argument("--daemonize", action="store_true", help="detach and log to daemon.log")
    args = parser.parse_args(argv)
    run_daemon(args.socket_path, args.idle_timeout, args.daemonize)


if __name__ == "__main__":
    main()
