"""Main CLI entry point."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from tooldjinn.ui.output import UIManager

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Tool Djinn - compact, queryable git and dotnet output.",
)
daemon_app = typer.Typer(help="Manage the background daemon.")
app.add_typer(daemon_app, name="daemon")

ui = UIManager()


# ============================================================================
# Argument parsing
# ============================================================================

def _coerce(raw: str, schema_type: Optional[str]) -> Any:
    """Convert a `--arg` value using the parameter's declared JSON type."""
    if schema_type == "boolean":
        lowered = raw.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
        return raw
    if schema_type == "integer":
        try:
            return int(raw.strip())
        except ValueError:
            return raw
    return raw


def parse_tool_arguments(
    tool: str,
    pairs: Optional[List[str]],
    json_args: Optional[str],
) -> Dict[str, Any]:
    """
    Merge `--json` and `--arg key=value` pairs into one arguments dict.

    Values are coerced by the tool's schema; array parameters collect every
    occurrence of their key. Validation itself happens in the tool.

    Raises:
        typer.BadParameter: Malformed pair or JSON
    """
    from tooldjinn.core.errors import UnknownToolError
    from tooldjinn.tools.registry import get_tool

    arguments: Dict[str, Any] = {}
    if json_args:
        try:
            loaded = json.loads(json_args)
        except json.JSONDecodeError as e:
            raise typer.BadParameter(f"Invalid JSON: {e}")
        if not isinstance(loaded, dict):
            raise typer.BadParameter("--json must be a JSON object")
        arguments.update(loaded)

    try:
        properties = get_tool(tool).parameters["properties"]
    except UnknownToolError:
        properties = {}

    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got '{pair}'")
        schema_type = properties.get(key, {}).get("type")
        if schema_type == "array":
            arguments.setdefault(key, []).append(value)
        else:
            arguments[key] = _coerce(value, schema_type)

    return arguments


# ============================================================================
# Commands
# ============================================================================

@app.command()
def call(
    tool: str = typer.Argument(..., help="Tool name, e.g. git_status"),
    arg: Optional[List[str]] = typer.Option(None, "--arg", "-a", help="Tool argument as key=value (repeatable)"),
    json_args: Optional[str] = typer.Option(None, "--json", help="Tool arguments as a JSON object"),
    session: str = typer.Option("default", "--session", "-s", help="Session whose stored responses to use"),
) -> None:
    """
    Run a tool and print its compact response.

    Example: tool-djinn call git_log --arg max_entries=5

    Runs inside the daemon when it is up, so *_last_response can see
    earlier calls; otherwise runs in-process with a fresh session.
    """
    arguments = parse_tool_arguments(tool, arg, json_args)

    from tooldjinn.daemon.client import DaemonClient, is_daemon_enabled
    from tooldjinn.daemon.protocol import ProtocolError

    client = DaemonClient()
    if is_daemon_enabled() and client.is_daemon_running():
        try:
            ok, result = client.call(tool, arguments, cwd=str(Path.cwd()), session_name=session)
        except (OSError, ProtocolError) as e:
            ui.error(f"Lost connection to daemon: {e}")
            raise typer.Exit(1)
        if not ok:
            ui.error(f"Daemon error: {result.get('error')}")
            raise typer.Exit(1)
        text, is_error = result.get("text", ""), bool(result.get("is_error"))
    else:
        from tooldjinn.tools.registry import dispatch, get_tool_settings, new_sessions

        try:
            settings = get_tool_settings()
        except ValueError as e:
            ui.error(f"Error loading configuration: {e}")
            raise typer.Exit(1)
        response = dispatch(tool, arguments, new_sessions(session), settings)
        text, is_error = response.text, response.is_error

    typer.echo(text)
    if is_error:
        raise typer.Exit(1)


@app.command()
def tools(
    as_json: bool = typer.Option(False, "--json", help="Print full function-calling schemas"),
) -> None:
    """List available tools."""
    from tooldjinn.tools.registry import TOOLS, build_tool_schema

    if as_json:
        typer.echo(json.dumps(build_tool_schema(), indent=2))
        return

    width = max(len(spec.name) for spec in TOOLS)
    for spec in TOOLS:
        typer.echo(f"{spec.name.ljust(width)}  {spec.description}")


@app.command()
def settings(
    action: str = typer.Argument(..., help="Action: init, show, or edit"),
) -> None:
    """Manage Tool Djinn configuration."""
    from tooldjinn.ui.config_commands import handle_config
    handle_config(action)


@daemon_app.command("start")
def daemon_start() -> None:
    """Start the daemon in the background."""
    from tooldjinn.daemon.client import DaemonClient

    client = DaemonClient()
    if client.is_daemon_running():
        ui.dim("Daemon already running.")
        return
    if client.ensure_daemon_running(auto_start=True):
        ui.success("Daemon started.")
    else:
        ui.error("Failed to start daemon.")
        raise typer.Exit(1)


@daemon_app.command("stop")
def daemon_stop() -> None:
    """Stop the running daemon."""
    from tooldjinn.daemon.client import DaemonClient

    client = DaemonClient()
    if not client.is_daemon_running():
        ui.dim("Daemon is not running.")
        return
    if client.shutdown():
        ui.success("Daemon stopped.")
    else:
        ui.error("Daemon did not acknowledge shutdown.")
        raise typer.Exit(1)


@daemon_app.command("status")
def daemon_status() -> None:
    """Show daemon health and statistics."""
    from tooldjinn.daemon.client import DaemonClient

    stats = DaemonClient().health()
    if stats is None:
        ui.warning("Daemon is not running.")
        raise typer.Exit(1)

    ui.success("Daemon is running.")
    typer.echo(f"  Uptime: {stats.get('uptime_seconds', 0):.0f}s")
    typer.echo(f"  Active sessions: {stats.get('active_sessions', 0)}")
    typer.echo(f"  Stored responses: {stats.get('stored_responses', 0)}")
    typer.echo(f"  Calls handled: {stats.get('calls_handled', 0)}")


def run() -> None:
    """Entry point for console script mapping."""
    app()


if __name__ == "__main__":
    run()
