"""Tool Djinn: compact, queryable output for git and dotnet commands."""

__version__ = "0.1.0"
