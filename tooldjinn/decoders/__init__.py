"""
Decoders for the structured output of git sub-commands.

Each decoder pattern-matches known lines and skips everything else, so
malformed or empty input produces an empty summary rather than an error.
The render_* functions return None when nothing was found.
"""

from .blame import render_blame_summary
from .branch import render_branch_summary
from .conflicts import render_conflict_summary
from .diff import render_diff_summary
from .log import render_log_summary
from .status import render_status_summary

__all__ = [
    "render_blame_summary",
    "render_branch_summary",
    "render_conflict_summary",
    "render_diff_summary",
    "render_log_summary",
    "render_status_summary",
]
