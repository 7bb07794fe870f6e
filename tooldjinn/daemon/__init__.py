"""
Background daemon for Tool Djinn.

Keeps each session's last git and dotnet responses in memory between CLI
invocations, so `*_last_response` can look at output from an earlier call.

- DaemonState: settings plus per-session, per-family response slots
- DaemonServer: asyncio Unix-socket server (tooldjinn.daemon.server)
- DaemonClient: blocking client used by the CLI
"""

from tooldjinn.daemon.client import DaemonClient
from tooldjinn.daemon.paths import DaemonPaths, default_paths
from tooldjinn.daemon.protocol import (
    ProtocolError,
    deserialize_request,
    deserialize_response,
    serialize_request,
    serialize_response,
)
from tooldjinn.daemon.state import DaemonState

__all__ = [
    "DaemonClient",
    "DaemonPaths",
    "DaemonState",
    "ProtocolError",
    "default_paths",
    "serialize_request",
    "deserialize_request",
    "serialize_response",
    "deserialize_response",
]
