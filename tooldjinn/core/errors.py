"""Exceptions raised before or instead of a rendered command response."""


class ToolError(Exception):
    """Base class for errors that abort a tool call."""


class ArgumentValidationError(ToolError, ValueError):
    """A tool argument has the wrong type, range, or value."""


class WorkingDirectoryError(ArgumentValidationError):
    """The requested working directory is missing or not a directory."""


class CommandSpawnError(ToolError):
    """The external binary could not be started."""

    def __init__(self, binary: str, reason: str):
        self.binary = binary
        self.reason = reason
        super().__init__(f"Failed to start '{binary}': {reason}")


class UnknownToolError(ToolError, KeyError):
    """No tool is registered under the requested name."""

    def __str__(self) -> str:
        # KeyError would repr() the name
        return f"Unknown tool: {self.args[0]}" if self.args else "Unknown tool"
