"""In-memory state for the daemon.

Holds loaded settings and the per-session response slots. Slots live only
as long as the daemon process; nothing is written to disk.
"""

import time
from typing import Any, Dict

from tooldjinn.core.configs import ToolSettings, get_tool_settings
from tooldjinn.core.session import Session
from tooldjinn.tools.registry import new_sessions


class DaemonState:
    """
    Settings plus one set of family sessions per session name.

    Each session name gets its own git and dotnet slots, so two clients
    using different session names never overwrite each other's stored
    response. Calls sharing a session name share its slots and the last
    writer wins.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Args:
            config: Raw config dict from load_raw_config()
        """
        self.config = config
        self.settings: ToolSettings = get_tool_settings(config)
        self.start_time = time.time()
        self.calls_handled = 0

        # {session_name: {family: Session}}
        self.sessions: Dict[str, Dict[str, Session]] = {}

    def get_sessions(self, session_name: str) -> Dict[str, Session]:
        """Return the family sessions for `session_name`, creating them on first use."""
        if session_name not in self.sessions:
            self.sessions[session_name] = new_sessions(session_name)
        return self.sessions[session_name]

    def clear_session(self, session_name: str) -> bool:
        """Drop a session's stored responses. Returns False if it did not exist."""
        return self.sessions.pop(session_name, None) is not None

    def get_stats(self) -> Dict[str, Any]:
        """Get daemon statistics for health check."""
        stored = sum(
            1
            for families in self.sessions.values()
            for session in families.values()
            if session.get() is not None
        )
        return {
            "uptime_seconds": time.time() - self.start_time,
            "active_sessions": len(self.sessions),
            "stored_responses": stored,
            "calls_handled": self.calls_handled,
        }
