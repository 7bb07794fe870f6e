"""Tests for the daemon protocol, state and request routing."""

import asyncio
import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from tooldjinn.core.types import CommandResult
from tooldjinn.daemon.client import DaemonClient, is_daemon_enabled
from tooldjinn.daemon.paths import DaemonPaths, default_paths
from tooldjinn.daemon.protocol import (
    ProtocolError,
    deserialize_request,
    deserialize_response,
    serialize_request,
    serialize_response,
)
from tooldjinn.daemon.server import DaemonServer, with_client_cwd
from tooldjinn.daemon.state import DaemonState


class TestProtocol(unittest.TestCase):

    def test_request_defaults(self):
        request = deserialize_request(serialize_request("health"))
        self.assertEqual(
            request,
            {"command": "health", "tool": "", "arguments": {}, "cwd": "", "session_name": "default"},
        )

    def test_call_request(self):
        data = serialize_request(
            "call", tool="git_log", arguments={"max_entries": 3}, cwd="/repo", session_name="s1"
        )
        request = json.loads(data)
        self.assertEqual(request["tool"], "git_log")
        self.assertEqual(request["arguments"], {"max_entries": 3})
        self.assertEqual(request["session_name"], "s1")

    def test_response(self):
        response = deserialize_response(serialize_response("error", error="boom"))
        self.assertEqual(response, {"status": "error", "result": None, "error": "boom"})

    def test_one_message_per_line(self):
        data = serialize_response("ok", result={"text": "a\nb"})
        self.assertTrue(data.endswith(b"\n"))
        self.assertEqual(data.count(b"\n"), 1)
        self.assertEqual(deserialize_response(data)["result"]["text"], "a\nb")

    def test_invalid_json(self):
        with self.assertRaises(ProtocolError):
            deserialize_request(b"{not json\n")

    def test_non_object_rejected(self):
        with self.assertRaises(ProtocolError):
            deserialize_request(b"[1, 2]\n")


class TestDaemonPaths(unittest.TestCase):

    def test_default_directory(self):
        with patch.dict(os.environ, {"TOOLDJINN_DAEMON_DIR": ""}):
            paths = default_paths()
        self.assertEqual(paths.socket, Path.home() / ".config" / "tooldjinn" / "daemon.sock")

    def test_directory_override(self):
        with patch.dict(os.environ, {"TOOLDJINN_DAEMON_DIR": "/tmp/djinn"}):
            paths = default_paths()
        self.assertEqual(paths, DaemonPaths.under(Path("/tmp/djinn")))
        self.assertEqual(paths.pid, Path("/tmp/djinn/daemon.pid"))
        self.assertEqual(paths.log, Path("/tmp/djinn/daemon.log"))


class TestDaemonState(unittest.TestCase):

    def setUp(self):
        self.state = DaemonState({})

    def test_sessions_are_per_name(self):
        first = self.state.get_sessions("a")
        second = self.state.get_sessions("b")

        self.assertIs(self.state.get_sessions("a"), first)
        self.assertIsNot(first["git"], second["git"])
        self.assertEqual(set(first), {"git", "dotnet"})
        self.assertEqual(first["dotnet"].session_name, "a")

    def test_clear_session(self):
        self.state.get_sessions("a")
        self.assertTrue(self.state.clear_session("a"))
        self.assertFalse(self.state.clear_session("a"))

    def test_stats(self):
        sessions = self.state.get_sessions("a")
        sessions["git"].put(
            ["git", "status"],
            "text",
            CommandResult("", "", 0, 1, Path("/repo")),
        )
        stats = self.state.get_stats()

        self.assertEqual(stats["active_sessions"], 1)
        self.assertEqual(stats["stored_responses"], 1)
        self.assertEqual(stats["calls_handled"], 0)
        self.assertGreaterEqual(stats["uptime_seconds"], 0)


class TestWithClientCwd(unittest.TestCase):

    def test_missing_directory_uses_client_cwd(self):
        self.assertEqual(
            with_client_cwd("git_status", {}, "/home/me/repo"),
            {"working_directory": "/home/me/repo"},
        )

    def test_relative_directory_joined(self):
        result = with_client_cwd("dotnet_build", {"working_directory": "src/App"}, "/work")
        self.assertEqual(result["working_directory"], str(Path("/work") / "src/App"))

    def test_absolute_directory_kept(self):
        arguments = {"working_directory": "/elsewhere"}
        self.assertEqual(with_client_cwd("git_log", arguments, "/work"), arguments)

    def test_query_tools_untouched(self):
        self.assertEqual(with_client_cwd("git_last_response", {"query": "x"}, "/work"), {"query": "x"})

    def test_unknown_tool_untouched(self):
        self.assertEqual(with_client_cwd("nope", {}, "/work"), {})

    def test_no_client_cwd(self):
        self.assertEqual(with_client_cwd("git_status", {}, ""), {})


class TestHandleRequest(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.server = DaemonServer(
            socket_path=Path(self.temp_dir) / "daemon.sock",
            pid_path=Path(self.temp_dir) / "daemon.pid",
            idle_timeout=0,
        )
        self.server.state = DaemonState({})

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _request(self, **request):
        return deserialize_response(asyncio.run(self.server.handle_request(request)))

    def test_health(self):
        response = self._request(command="health")
        self.assertEqual(response["status"], "ok")
        self.assertIn("uptime_seconds", response["result"])

    def test_list_tools(self):
        response = self._request(command="list_tools")
        names = [entry["function"]["name"] for entry in response["result"]]
        self.assertIn("git_status", names)
        self.assertIn("dotnet_last_response", names)

    def test_unknown_command(self):
        response = self._request(command="restart")
        self.assertEqual(response, {"status": "error", "result": None, "error": "Unknown command: restart"})

    def test_call_requires_tool(self):
        response = self._request(command="call")
        self.assertEqual(response["error"], "Missing 'tool' parameter")

    def test_call_rejects_non_object_arguments(self):
        response = self._request(command="call", tool="git_status", arguments=["x"])
        self.assertEqual(response["error"], "'arguments' must be an object")

    def test_call_validation_failure_is_ok_status(self):
        response = self._request(command="call", tool="git_log", arguments={"max_entries": 0})
        self.assertEqual(response["status"], "ok")
        self.assertTrue(response["result"]["is_error"])
        self.assertTrue(response["result"]["text"].startswith("Command failed:"))

    @patch("tooldjinn.tools.git_tools.run_command")
    def test_call_keeps_output_between_requests(self, run_command):
        run_command.return_value = CommandResult(
            "100644 aaa 2\tsrc/app.py\n", "", 0, 1, Path(self.temp_dir)
        )

        first = self._request(
            command="call", tool="git_list_conflicts", cwd=self.temp_dir, session_name="s1"
        )
        self.assertFalse(first["result"]["is_error"])
        self.assertEqual(run_command.call_args[0][2], self.temp_dir)

        query = self._request(
            command="call",
            tool="git_last_response",
            arguments={"query": "src/app.py"},
            session_name="s1",
        )
        self.assertIn("src/app.py (stages: ours)", query["result"]["text"])

        other = self._request(command="call", tool="git_last_response", session_name="s2")
        self.assertEqual(
            other["result"]["text"], "No git commands have been run yet in this session."
        )
        self.assertEqual(self.server.state.calls_handled, 3)

    def test_clear_session(self):
        self.server.state.get_sessions("s1")
        response = self._request(command="clear_session", session_name="s1")
        self.assertEqual(response["result"], {"cleared": True})

    def test_shutdown_sets_event(self):
        response = self._request(command="shutdown")
        self.assertEqual(response["status"], "ok")
        self.assertTrue(self.server._shutdown_event.is_set())

    def _answer(self, data):
        async def run():
            reader = asyncio.StreamReader()
            reader.feed_data(data)
            reader.feed_eof()
            return await self.server._answer(reader)

        return asyncio.run(run())

    def test_request_line_is_routed(self):
        response = deserialize_response(self._answer(serialize_request("health")))
        self.assertEqual(response["status"], "ok")

    def test_malformed_line_gets_error_reply(self):
        response = deserialize_response(self._answer(b"{oops\n"))
        self.assertEqual(response["status"], "error")
        self.assertTrue(response["error"].startswith("Malformed message"))

    def test_empty_connection_gets_no_reply(self):
        self.assertIsNone(self._answer(b""))


class TestClient(unittest.TestCase):

    def test_not_running_without_socket(self):
        client = DaemonClient(socket_path=Path(tempfile.gettempdir()) / "no-such-tooldjinn.sock")
        self.assertFalse(client.is_daemon_running())
        self.assertIsNone(client.health())
        self.assertFalse(client.shutdown())

    def test_daemon_can_be_disabled(self):
        with patch.dict(os.environ, {"TOOLDJINN_NO_DAEMON": "1"}):
            self.assertFalse(is_daemon_enabled())


if __name__ == "__main__":
    unittest.main()
