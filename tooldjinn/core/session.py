"""Most-recent command output, kept per session for later querying."""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from tooldjinn.core.configs import OutputBudgets
from tooldjinn.core.formatter import format_result
from tooldjinn.core.types import CommandResult, ToolResponse


@dataclass(frozen=True)
class StoredCommandOutput:
    """Detailed rendering of the last command plus its raw result."""
    command_args: List[str]
    formatted_text: str
    raw: CommandResult
    captured_at: str


class Session:
    """
    Single-slot store for the last command response of one tool family.

    Only keeps the last response (not full history): every structured
    tool call overwrites the slot. Nothing is written to disk, so the
    slot disappears with the process.

    Thread safety: not locked. Two calls sharing one Session may race and
    the last writer wins; the daemon hands each session name its own
    Session objects so independent callers never share a slot.
    """

    def __init__(self, family: str = "git", session_name: str = "default"):
        """
        Initialize session.

        Args:
            family: Tool family ("git", "dotnet"); names the query tool
            session_name: Name of the owning session
        """
        self.family = family
        self.session_name = session_name
        self._last: Optional[StoredCommandOutput] = None

    @property
    def query_tool(self) -> str:
        return f"{self.family}_last_response"

    def put(self, command_args: Sequence[str], formatted_text: str, raw: CommandResult) -> StoredCommandOutput:
        """Replace the stored response."""
        self._last = StoredCommandOutput(
            command_args=list(command_args),
            formatted_text=formatted_text,
            raw=raw,
            captured_at=datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
        )
        return self._last

    def get(self) -> Optional[StoredCommandOutput]:
        return self._last

    def clear(self) -> None:
        """Clear the stored response (start fresh)."""
        self._last = None

    def build_response(
        self,
        command_line: Sequence[str],
        result: CommandResult,
        stdout: Optional[str] = None,
        stderr: Optional[str] = None,
        budgets: Optional[OutputBudgets] = None,
    ) -> ToolResponse:
        """
        Format a command result, store the detailed rendering, return the preview.

        Args:
            command_line: Full argv including the binary name
            result: Captured process result
            stdout: Replacement stdout (decoder summary), if any
            stderr: Replacement stderr, if any
            budgets: Token budgets for formatting

        Returns:
            ToolResponse carrying the preview text
        """
        display = replace(
            result,
            stdout=result.stdout if stdout is None else stdout,
            stderr=result.stderr if stderr is None else stderr,
        )
        formatted = format_result(command_line, display, budgets=budgets, query_tool=self.query_tool)
        self.put(command_line, formatted.detailed_text, display)
        return ToolResponse(text=formatted.preview_text, is_error=formatted.is_error)
