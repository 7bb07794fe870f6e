"""
Wire format shared by the daemon and its client.

Every message is one JSON object on one line of UTF-8. A client connects,
writes a request line, reads the response line, and the server hangs up.

Requests carry ``command`` (call, list_tools, clear_session, health or
shutdown); a call also carries ``tool``, ``arguments``, the client's
``cwd`` and the ``session_name`` whose response slots it should use.

Responses carry ``status`` ("ok" or "error"), ``result`` and ``error``.
A tool that ran and exited non-zero is still "ok": its own is_error flag
travels inside ``result``.
"""

import json
from typing import Any, Dict, Optional

# Upper bound for a single request line
MAX_MESSAGE_BYTES = 1 << 20


class ProtocolError(ValueError):
    """A line on the socket was not a JSON object."""


def encode_message(payload: Dict[str, Any]) -> bytes:
    # json.dumps escapes embedded newlines, so one object is one line
    return json.dumps(payload, separators=(",", ":")).encode("utf-8") + b"\n"


def decode_message(line: bytes) -> Dict[str, Any]:
    """
    Raises:
        ProtocolError: The line is not UTF-8 JSON or not an object
    """
    try:
        payload = json.loads(line.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ProtocolError(f"Malformed message: {e}") from e
    if not isinstance(payload, dict):
        raise ProtocolError("Malformed message: expected a JSON object")
    return payload


def serialize_request(
    command: str,
    tool: str = "",
    arguments: Optional[Dict[str, Any]] = None,
    cwd: str = "",
    session_name: str = "default",
) -> bytes:
    return encode_message(
        {
            "command": command,
            "tool": tool,
            "arguments": arguments or {},
            "cwd": cwd,
            "session_name": session_name,
        }
    )


def serialize_response(status: str, result: Any = None, error: Optional[str] = None) -> bytes:
    return encode_message({"status": status, "result": result, "error": error})


deserialize_request = decode_message
deserialize_response = decode_message
