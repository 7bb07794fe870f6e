"""Decoder for `git status --porcelain=2 --branch` output."""

import re
from dataclasses import dataclass, field
from typing import List, Optional

MAX_SECTION_ENTRIES = 40
DETACHED_HEAD = "(detached HEAD)"

_AHEAD_BEHIND = re.compile(r"\+(\d+)\s+-(\d+)")

# Space-separated fields preceding the path in each changed-entry record
_FIELDS_BEFORE_PATH = {"1": 8, "2": 9, "u": 10}

_STATUS_LABELS = {
    "M": "Modified",
    "A": "Added",
    "D": "Deleted",
    "C": "Copied",
    "T": "Type change",
    "U": "Updated (unmerged)",
}


@dataclass
class StatusEntry:
    path: str
    status: str


@dataclass
class StatusSummary:
    head: Optional[str] = None
    upstream: Optional[str] = None
    ahead: Optional[int] = None
    behind: Optional[int] = None
    stash: List[str] = field(default_factory=list)
    staged: List[StatusEntry] = field(default_factory=list)
    unstaged: List[StatusEntry] = field(default_factory=list)
    untracked: List[str] = field(default_factory=list)
    ignored: List[str] = field(default_factory=list)
    conflicts: List[StatusEntry] = field(default_factory=list)

    @property
    def stash_count(self) -> int:
        # `# stash <n>` reports a count; anything else counts as one entry
        return sum(int(value) if value.isdigit() else 1 for value in self.stash)


def describe_status_code(code: str, original_path: Optional[str] = None) -> str:
    """Map a porcelain XY character to a human label."""
    if code == "R":
        return f"Renamed from {original_path}" if original_path else "Renamed"
    return _STATUS_LABELS.get(code, "Changed")


def _parse_header(line: str, summary: StatusSummary) -> None:
    _, _, rest = line.partition(" ")
    key, _, value = rest.partition(" ")
    value = value.strip()

    if key == "branch.head":
        summary.head = value or DETACHED_HEAD
    elif key == "branch.upstream":
        summary.upstream = value or None
    elif key == "branch.ab":
        match = _AHEAD_BEHIND.search(value)
        if match:
            summary.ahead = int(match.group(1))
            summary.behind = int(match.group(2))
    elif key == "stash":
        summary.stash.append(value)


def _split_paths(line: str, record_type: str) -> tuple[str, Optional[str]]:
    # Renames put "<path>\t<origPath>" after the fixed fields
    meta, _, original_path = line.partition("\t")
    parts = meta.split(" ", _FIELDS_BEFORE_PATH[record_type])
    path = parts[-1] if len(parts) > 2 else ""
    return path, original_path or None


def _parse_change(line: str, summary: StatusSummary) -> None:
    meta_parts = line.split(" ", 2)
    record_type = meta_parts[0]
    xy = meta_parts[1] if len(meta_parts) > 1 else ".."
    index_status = xy[0] if len(xy) > 0 else "."
    worktree_status = xy[1] if len(xy) > 1 else "."
    path, original_path = _split_paths(line, record_type)

    if record_type == "u":
        summary.conflicts.append(
            StatusEntry(path, describe_status_code(index_status, original_path))
        )
        return

    if index_status != ".":
        shown = f"{original_path} -> {path}" if original_path else path
        summary.staged.append(
            StatusEntry(shown, describe_status_code(index_status, original_path))
        )

    # A rename staged and then edited again lands in both lists.
    if worktree_status != ".":
        entry = StatusEntry(path, describe_status_code(worktree_status, original_path))
        if "U" in (index_status, worktree_status):
            summary.conflicts.append(entry)
        else:
            summary.unstaged.append(entry)


def parse_status(raw: str) -> StatusSummary:
    """
    Decode porcelain v2 status output in a single pass.

    Unrecognised lines are skipped; this never raises.
    """
    summary = StatusSummary()

    for line in raw.split("\n"):
        if not line.strip():
            continue
        if line.startswith("#"):
            _parse_header(line, summary)
        elif line.startswith("? "):
            path = line[2:].strip()
            if path:
                summary.untracked.append(path)
        elif line.startswith("! "):
            path = line[2:].strip()
            if path:
                summary.ignored.append(path)
        elif line.startswith(("1 ", "2 ", "u ")):
            _parse_change(line, summary)

    return summary


def _render_items(lines: List[str], title: str, items: List[str]) -> None:
    lines.append(f"{title}:")
    if not items:
        lines.append("    None")
        return
    for item in items[:MAX_SECTION_ENTRIES]:
        lines.append(f"    - {item}")
    if len(items) > MAX_SECTION_ENTRIES:
        lines.append(f"    ... {len(items) - MAX_SECTION_ENTRIES} more")


def _labelled(entries: List[StatusEntry]) -> List[str]:
    return [f"{entry.path} [{entry.status}]" for entry in entries]


def render_status_summary(raw: str) -> Optional[str]:
    """
    Render a fixed-order status summary.

    Returns None if the output has no non-blank lines.
    """
    if not raw.strip():
        return None

    summary = parse_status(raw)

    head_line = f"  - HEAD: {summary.head or '(not reported)'}"
    if summary.upstream:
        head_line += (
            f" tracking {summary.upstream}"
            f" (ahead {summary.ahead or 0}, behind {summary.behind or 0})"
        )

    lines = ["Status summary:", head_line]
    if summary.stash_count:
        lines.append(f"  - Stash entries: {summary.stash_count}")

    _render_items(lines, "  Staged changes", _labelled(summary.staged))
    _render_items(lines, "  Unstaged changes", _labelled(summary.unstaged))
    _render_items(lines, "  Untracked files", summary.untracked)
    _render_items(lines, "  Ignored files", summary.ignored)
    _render_items(lines, "  Merge conflicts", _labelled(summary.conflicts))

    return "\n".join(lines)
