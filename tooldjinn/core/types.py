"""Records passed between the executor, formatter, and session store."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external process invocation."""
    stdout: str
    stderr: str
    exit_code: Optional[int]
    duration_ms: int
    working_directory: Path


@dataclass(frozen=True)
class FormattedResult:
    """Preview and detailed renderings of a CommandResult."""
    preview_text: str
    detailed_text: str
    is_error: bool


@dataclass(frozen=True)
class ToolResponse:
    """Text returned to the caller of a tool."""
    text: str
    is_error: bool = False

    def to_dict(self) -> dict:
        return {"text": self.text, "is_error": self.is_error}
