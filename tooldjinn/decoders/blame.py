"""Decoder for `git blame --line-porcelain` output.

Each annotated line arrives as a header (`<hash> <orig> <final> [<count>]`),
a run of metadata lines, and finally the source line prefixed with a tab.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional


class _ScanState(enum.Enum):
    EXPECT_HEADER = "expect_header"
    EXPECT_META_OR_CONTENT = "expect_meta_or_content"


@dataclass
class BlameEntry:
    final_line: int
    commit: str
    author: str = "unknown"
    author_time: Optional[str] = None
    summary: Optional[str] = None
    content: str = ""


def epoch_to_iso(value: str) -> Optional[str]:
    """Convert epoch seconds to ISO-8601 UTC with millisecond precision."""
    try:
        moment = datetime.fromtimestamp(int(value.strip()), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _start_entry(header: str) -> BlameEntry:
    parts = header.split(" ")
    try:
        final_line = int(parts[2]) if len(parts) > 2 else 0
    except ValueError:
        final_line = 0
    return BlameEntry(final_line=final_line, commit=parts[0])


def _apply_metadata(entry: BlameEntry, line: str) -> None:
    if line.startswith("author-time "):
        entry.author_time = epoch_to_iso(line[len("author-time "):])
    elif line.startswith("author "):
        entry.author = line[len("author "):].strip() or "unknown"
    elif line.startswith("summary "):
        entry.summary = line[len("summary "):].strip()


def parse_blame(raw: str) -> List[BlameEntry]:
    """Scan line-porcelain output; an entry ends at its tab-prefixed line."""
    entries: List[BlameEntry] = []
    state = _ScanState.EXPECT_HEADER
    current: Optional[BlameEntry] = None

    for line in raw.split("\n"):
        if state is _ScanState.EXPECT_HEADER:
            if not line:
                continue
            current = _start_entry(line)
            state = _ScanState.EXPECT_META_OR_CONTENT
        elif line.startswith("\t"):
            current.content = line[1:]
            entries.append(current)
            current = None
            state = _ScanState.EXPECT_HEADER
        else:
            _apply_metadata(current, line)

    # Truncated output: keep the header we already read
    if current is not None:
        entries.append(current)

    return entries


def render_blame_summary(raw: str, file: str) -> Optional[str]:
    entries = parse_blame(raw)
    if not entries:
        return None

    lines = [f"Blame summary for {file}:"]
    for entry in entries:
        lines.append(
            f"  {entry.final_line:>4} | {entry.commit[:12]} | {entry.author}"
            f" | {entry.author_time or 'unknown time'}"
        )
        lines.append(f"       {entry.content}")
        if entry.summary:
            lines.append(f"       summary: {entry.summary}")

    return "\n".join(lines)
